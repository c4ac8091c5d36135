import itertools
import unittest
from buildenv.models import BuildProperties, Candidate, CompilationConfig
from buildenv.utils import derive_build_properties, find_matching_hash

REQUIRED = BuildProperties(
    os="Linux",
    build_type="Debug",
    compiler="gcc",
    compiler_version="g112",
    compiler_libcxx="libstdc++",
    arch="x86_64",
)


def settings(**overrides):
    values = dict(REQUIRED.as_dict())
    values.update({k.replace("__", "."): v for k, v in overrides.items()})
    return values


class TestBuildProperties(unittest.TestCase):

    def test_derive_build_properties(self):
        compilation = CompilationConfig(compiler_id="g112", arch="x86_64", libcxx="libstdc++")
        props = derive_build_properties(compilation).as_dict()
        self.assertEqual(props, {
            "os": "Linux",
            "build_type": "Debug",
            "compiler": "gcc",
            "compiler.version": "g112",
            "compiler.libcxx": "libstdc++",
            "arch": "x86_64",
            "stdver": "",
            "flagcollection": "",
        })

    def test_compiler_type_is_used_when_set(self):
        compilation = CompilationConfig(compiler_id="clang1500", compiler_type="clang")
        self.assertEqual(derive_build_properties(compilation).compiler, "clang")


class TestMatcher(unittest.TestCase):

    def test_exact_match(self):
        candidates = {"abc123": Candidate("abc123", settings())}
        self.assertEqual(find_matching_hash(REQUIRED, candidates), "abc123")

    def test_mismatched_arch_does_not_match(self):
        candidates = {"abc123": Candidate("abc123", settings(arch="x86"))}
        self.assertIsNone(find_matching_hash(REQUIRED, candidates))

    def test_picks_matching_candidate_among_others(self):
        candidates = {
            "x86": Candidate("x86", settings(arch="x86")),
            "clang": Candidate("clang", settings(compiler="clang")),
            "good": Candidate("good", settings()),
        }
        self.assertEqual(find_matching_hash(REQUIRED, candidates), "good")

    def test_cshared_matches_any_compiler_and_runtime(self):
        candidates = {"c": Candidate("c", settings(compiler="cshared", compiler__version="whatever",
                                                   compiler__libcxx="libc++"))}
        self.assertEqual(find_matching_hash(REQUIRED, candidates), "c")

    def test_cshared_still_requires_other_fields(self):
        candidates = {"c": Candidate("c", settings(compiler="cshared", arch="arm64"))}
        self.assertIsNone(find_matching_hash(REQUIRED, candidates))

    def test_cshared_compiler_version_alone(self):
        candidates = {"c": Candidate("c", settings(compiler__version="cshared"))}
        self.assertEqual(find_matching_hash(REQUIRED, candidates), "c")

    def test_libcxx_mismatch_without_wildcard(self):
        candidates = {"c": Candidate("c", settings(compiler__libcxx="libc++"))}
        self.assertIsNone(find_matching_hash(REQUIRED, candidates))

    def test_missing_setting_does_not_match(self):
        partial = settings()
        del partial["stdver"]
        self.assertIsNone(find_matching_hash(REQUIRED, {"c": Candidate("c", partial)}))

    def test_no_candidates(self):
        self.assertIsNone(find_matching_hash(REQUIRED, {}))

    def test_required_field_order_does_not_change_result(self):
        candidates = {
            "x86": Candidate("x86", settings(arch="x86")),
            "c": Candidate("c", settings(compiler="cshared", compiler__libcxx="libc++")),
        }
        required = REQUIRED.as_dict()
        for keys in itertools.permutations(required):
            reordered = {k: required[k] for k in keys}
            self.assertEqual(find_matching_hash(reordered, candidates), "c")

if __name__ == '__main__':
    unittest.main()
