import click
import dataclasses
import sys
from .. import config as config_module
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..models import CompilationConfig, LibraryRequirement
from ..provisioner import Provisioner


def _parse_lib(value):
    if "=" not in value:
        raise click.BadParameter(f"'{value}' is not in ID=VERSION form", param_hint="--lib")
    lib_id, version = value.split("=", 1)
    if not lib_id or not version:
        raise click.BadParameter(f"'{value}' is not in ID=VERSION form", param_hint="--lib")
    return lib_id, version


@click.command()
@click.argument("destination", type=click.Path(file_okay=False))
@click.option("--compiler-type", default="", help="Compiler family, e.g. gcc or clang (defaults to gcc).")
@click.option("--compiler-id", required=True, help="Compiler identifier, e.g. g112.")
@click.option("--arch", default=None, help="Target architecture. Derived from --option when omitted.")
@click.option("--libcxx", default=None, help="C++ runtime. Derived from --option when omitted.")
@click.option("--option", "options", multiple=True, help="Compiler option used to derive arch and libcxx.")
@click.option("--binary/--no-binary", default=False, help="Whether the build links a binary.")
@click.option("--lib", "libs", multiple=True, help="Extra library as ID=VERSION (packaged headers).")
@click.option("--report", is_flag=True, help="Report every library's status instead of failing on the first error.")
@click.option("--verbose", is_flag=True, help="Enable verbose output.")
@click.pass_context
@handle_exceptions
def provision(ctx, destination, compiler_type, compiler_id, arch, libcxx, options, binary, libs, report, verbose):
    """Download the library packages a compilation needs into DESTINATION."""
    logger.set_verbose(verbose)
    conf = config_module.load_config(path=ctx.obj["path"])
    settings = config_module.ProvisionerConfig.from_dict(conf)
    if not settings.host:
        logger.warning("No package index host configured; nothing to provision.")
        logger.info(f"Set [conan] host in {config_module.CONFIG_FILE} or {config_module.HOST_ENV_VAR}.")
        return

    libraries = config_module.load_libraries(conf)
    for value in libs:
        lib_id, version = _parse_lib(value)
        libraries[lib_id] = LibraryRequirement(version=version, packagedheaders=True)

    if not libraries:
        logger.warning("No libraries requested.")
        return

    compilation = CompilationConfig.from_options(compiler_type, compiler_id, options)
    overrides = {}
    if arch:
        overrides["arch"] = arch
    if libcxx:
        overrides["libcxx"] = libcxx
    if overrides:
        compilation = dataclasses.replace(compilation, **overrides)

    logger.info(f"Provisioning {len(libraries)} libraries into {destination}...")
    provisioner = Provisioner(settings)

    if report:
        result = provisioner.setup_report(compilation, destination, libraries, binary)
        for item in sorted(result.results, key=lambda r: r.library_id):
            if item.ok:
                click.echo(f"{item.library_id}: {item.status.value} ({item.outcome.time:.0f} ms)")
            else:
                click.echo(f"{item.library_id}: {item.status.value} - {item.error}")
        if not result.succeeded:
            sys.exit(1)
        return

    outcomes = provisioner.setup(compilation, destination, libraries, binary)
    for outcome in outcomes:
        click.echo(f"{outcome.step}: {outcome.package_url} ({outcome.time:.0f} ms)")
    if len(outcomes) < len(libraries):
        logger.warning(f"Provisioned {len(outcomes)} of {len(libraries)} requested libraries.")
    else:
        logger.success(f"Provisioned {len(outcomes)} libraries.")
