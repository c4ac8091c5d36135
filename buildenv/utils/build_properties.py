from ..models import BuildProperties

CONAN_OS = "Linux"
CONAN_BUILD_TYPE = "Debug"


def derive_build_properties(compilation):
    """
    Maps a compilation configuration onto the Conan settings a package must have been built with.
    """
    # stdver and flagcollection are published by the index but not discriminated on yet
    return BuildProperties(
        os=CONAN_OS,
        build_type=CONAN_BUILD_TYPE,
        compiler=compilation.compiler_type_or_gcc,
        compiler_version=compilation.compiler_id,
        compiler_libcxx=compilation.libcxx,
        arch=compilation.arch,
        stdver="",
        flagcollection="",
    )
