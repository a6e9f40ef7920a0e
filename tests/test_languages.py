"""
Tests for language variants, option resolution and the catalog.
"""

import re

import pytest

from snipbox.core.exceptions import ConfigurationError, UnknownKeysError, UnknownValueError
from snipbox.languages import VARIANTS, Catalog, Language, LanguageVariant, OptionSpec
from snipbox.languages.variants import JAVA, PYTHON


@pytest.fixture(scope="module")
def catalog():
    return Catalog.default()


def _toy(language=Language.BASH, codes=("toy",), options=()):
    return LanguageVariant(
        language=language,
        display_name=f"Toy {language.value}",
        codes=codes,
        dockerfile_template="FROM scratch\n",
        options=options,
    )


class TestCatalog:
    def test_every_language_registered(self, catalog):
        assert {variant.language for variant in catalog} == set(Language)
        assert len(catalog) == len(Language)

    @pytest.mark.parametrize(
        "code, language",
        [
            ("python", Language.PYTHON),
            ("py", Language.PYTHON),
            ("PY", Language.PYTHON),
            ("Python", Language.PYTHON),
            ("js", Language.JAVASCRIPT),
            ("c++", Language.CPP),
            ("rs", Language.RUST),
            ("sh", Language.BASH),
            ("golang", Language.GO),
        ],
    )
    def test_lookup_by_code(self, catalog, code, language):
        assert catalog.get_by_code(code).language is language

    def test_unknown_code(self, catalog):
        assert catalog.get_by_code("brainfuck") is None

    def test_lookup_is_exact(self, catalog):
        assert catalog.get_by_code("pyth") is None
        assert catalog.get_by_code(" py") is None

    def test_get_by_language(self, catalog):
        assert catalog.get(Language.JAVA) is JAVA

    def test_duplicate_code_rejected(self):
        with pytest.raises(ConfigurationError, match="used by both"):
            Catalog([_toy(Language.BASH, ("toy",)), _toy(Language.PERL, ("TOY",))])

    def test_duplicate_language_rejected(self):
        with pytest.raises(ConfigurationError, match="registered twice"):
            Catalog([_toy(Language.BASH, ("a",)), _toy(Language.BASH, ("b",))])

    def test_image_name_collision_rejected(self):
        # Both values sanitize to the tag "axb"
        variant = _toy(options=(OptionSpec("flag", ("a+b", "axb")),))
        with pytest.raises(ConfigurationError, match="shared by"):
            Catalog([variant])


class TestDefaults:
    @pytest.mark.parametrize("variant", VARIANTS, ids=lambda v: v.language.value)
    def test_defaults_resolve(self, variant):
        spec = variant.resolve({})
        assert spec.code_path == "/tmp/code"
        assert spec.dockerfile.startswith("FROM ")
        assert spec.image_name.startswith(f"{variant.language.value}:")

    @pytest.mark.parametrize("variant", VARIANTS, ids=lambda v: v.language.value)
    def test_resolution_is_deterministic(self, variant):
        for values in variant.configurations():
            assert variant.resolve(values) == variant.resolve(dict(values))

    @pytest.mark.parametrize("variant", VARIANTS, ids=lambda v: v.language.value)
    def test_templates_have_no_leftover_placeholders(self, variant):
        for values in variant.configurations():
            dockerfile = variant.resolve(values).dockerfile
            assert not re.search(r"\{[a-z_]+\}", dockerfile)

    def test_none_and_empty_options_match(self):
        assert PYTHON.resolve(None) == PYTHON.resolve({})

    def test_explicit_defaults_share_image(self):
        assert PYTHON.resolve({"version": "3.12"}) == PYTHON.resolve({})


class TestPythonVariant:
    def test_default_installs_scientific_bundle(self):
        spec = PYTHON.resolve({})
        assert spec.image_name == "python:3.12-scientific"
        assert "FROM python:3.12-slim" in spec.dockerfile
        assert "pip install" in spec.dockerfile
        assert "numpy" in spec.dockerfile

    def test_old_version_without_bundle(self):
        spec = PYTHON.resolve({"version": "3.8", "bundle": "none"})
        assert spec.image_name == "python:3.8-none"
        assert "FROM python:3.8-slim" in spec.dockerfile
        assert "pip install" not in spec.dockerfile
        assert 'CMD ["python", "/tmp/code"]' in spec.dockerfile

    def test_unknown_key(self):
        with pytest.raises(UnknownKeysError) as exc_info:
            PYTHON.resolve({"foo": "bar"})
        assert exc_info.value.keys == ["foo"]

    def test_unknown_keys_sorted(self):
        with pytest.raises(UnknownKeysError) as exc_info:
            PYTHON.resolve({"zeta": "1", "alpha": "2", "version": "3.11"})
        assert exc_info.value.keys == ["alpha", "zeta"]

    def test_unknown_value(self):
        with pytest.raises(UnknownValueError) as exc_info:
            PYTHON.resolve({"version": "2.7"})
        assert exc_info.value.key == "version"
        assert exc_info.value.value == "2.7"
        assert "3.12" in exc_info.value.supported


class TestOtherVariants:
    def test_no_option_language_rejects_any_key(self):
        bash = Catalog.default().get(Language.BASH)
        assert bash.resolve({}).image_name == "bash:latest"
        with pytest.raises(UnknownKeysError):
            bash.resolve({"version": "5"})

    def test_cpp_standard_is_sanitized_in_tag(self):
        cpp = Catalog.default().get(Language.CPP)
        spec = cpp.resolve({"std": "c++20"})
        assert spec.image_name == "cpp:cxx20"
        assert "-std=c++20" in spec.dockerfile

    def test_java_reads_class_name_at_runtime(self):
        spec = JAVA.resolve({"version": "17"})
        assert "FROM eclipse-temurin:17-jdk" in spec.dockerfile
        assert "${class:-Main}" in spec.dockerfile
        assert "javac" in spec.dockerfile
        # The shell-form command is a single Dockerfile line
        cmd_lines = [line for line in spec.dockerfile.splitlines() if line.startswith("CMD")]
        assert len(cmd_lines) == 1
        assert cmd_lines[0].endswith('java -cp /tmp "$class"')

    def test_configurations_cover_every_choice(self):
        combos = list(PYTHON.configurations())
        assert len(combos) == 5 * 2
        assert {"version": "3.8", "bundle": "none"} in combos
