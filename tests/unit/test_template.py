"""
Tests for template token expansion.

This test suite covers:
1. Null, empty and token-free input
2. {name} tokens against context variables and installFolder
3. ${NAME} tokens against INSTALL_FOLDER, variables and the environment
4. Unresolved tokens
5. List and dict expansion
"""

from plugvisor.plugin.models import PluginContext
from plugvisor.template import expand, expand_dict, expand_list


def no_env(_name):
    return None


def env_from(values):
    return values.get


class TestBasicInput:
    """Test inputs that contain nothing to expand."""

    def test_none_returns_none(self):
        """None is returned unchanged."""
        assert expand(None, PluginContext()) is None

    def test_empty_returns_empty(self):
        """An empty string is returned unchanged."""
        assert expand("", PluginContext()) == ""

    def test_plain_text_unchanged(self):
        """Strings without tokens are returned as-is."""
        assert expand("/usr/bin/node", PluginContext()) == "/usr/bin/node"

    def test_none_context(self):
        """A missing context leaves brace tokens verbatim."""
        assert expand("{name}", None, no_env) == "{name}"


class TestBraceTokens:
    """Test {name} tokens."""

    def test_variable_substitution(self):
        """A known variable is substituted."""
        ctx = PluginContext(variables={"name": "v"})

        assert expand("Hello {name}!", ctx) == "Hello v!"

    def test_variables_are_case_insensitive(self):
        """Any casing of the token matches the variable."""
        ctx = PluginContext(variables={"TestVar": "value"})

        assert expand("{testvar}", ctx) == "value"
        assert expand("{TESTVAR}", ctx) == "value"
        assert expand("{TestVar}", ctx) == "value"

    def test_missing_variable_left_verbatim(self):
        """Unknown tokens stay in place."""
        assert expand("Hello {missing}!", PluginContext()) == "Hello {missing}!"

    def test_install_folder_property(self):
        """{installFolder} falls back to the context install folder."""
        ctx = PluginContext(install_folder="/opt/appium")

        assert expand("{installFolder}/bin", ctx) == "/opt/appium/bin"
        assert expand("{INSTALLFOLDER}/bin", ctx) == "/opt/appium/bin"

    def test_variable_wins_over_install_folder(self):
        """A variable named installFolder takes precedence."""
        ctx = PluginContext(
            install_folder="/opt/appium", variables={"installFolder": "/other"}
        )

        assert expand("{installFolder}", ctx) == "/other"

    def test_non_string_values_are_converted(self):
        """Numbers are rendered as text and None as empty."""
        ctx = PluginContext(variables={"port": 4723, "empty": None})

        assert expand("--port {port}", ctx) == "--port 4723"
        assert expand("[{empty}]", ctx) == "[]"

    def test_multiple_tokens(self):
        """Several tokens in one string are all expanded."""
        ctx = PluginContext(variables={"host": "localhost", "port": "4723"})

        assert expand("{host}:{port}/{host}", ctx) == "localhost:4723/localhost"


class TestDollarTokens:
    """Test ${NAME} tokens."""

    def test_install_folder(self):
        """${INSTALL_FOLDER} is the context install folder."""
        ctx = PluginContext(install_folder="/p")

        assert expand("${INSTALL_FOLDER}", ctx, no_env) == "/p"
        assert expand("${install_folder}/bin", ctx, no_env) == "/p/bin"

    def test_install_folder_wins_over_environment(self):
        """The install folder is checked before the environment."""
        ctx = PluginContext(install_folder="/p")
        env = env_from({"INSTALL_FOLDER": "/from-env"})

        assert expand("${INSTALL_FOLDER}", ctx, env) == "/p"

    def test_environment_lookup(self):
        """Unknown names fall through to the environment."""
        env = env_from({"TEST_VAR": "test_value"})

        assert expand("${TEST_VAR}", PluginContext(), env) == "test_value"

    def test_variable_wins_over_environment(self):
        """Context variables are checked before the environment."""
        ctx = PluginContext(variables={"test_var": "from-context"})
        env = env_from({"TEST_VAR": "from-env"})

        assert expand("${TEST_VAR}", ctx, env) == "from-context"

    def test_empty_environment_value_is_unresolved(self):
        """An empty environment value leaves the token in place."""
        env = env_from({"EMPTY": ""})

        assert expand("${EMPTY}", PluginContext(), env) == "${EMPTY}"

    def test_missing_name_left_verbatim(self):
        """Names found nowhere stay in place."""
        assert expand("a ${NOPE} b", PluginContext(), no_env) == "a ${NOPE} b"

    def test_default_lookup_reads_os_environ(self, monkeypatch):
        """Without an injected lookup the process environment is used."""
        monkeypatch.setenv("PLUGVISOR_TEMPLATE_TEST", "from-os")

        assert expand("${PLUGVISOR_TEMPLATE_TEST}", PluginContext()) == "from-os"


class TestSinglePass:
    """Test that substituted values are not scanned again."""

    def test_substituted_value_not_rescanned(self):
        """A value containing a token is inserted literally."""
        ctx = PluginContext(variables={"a": "{b}", "b": "nested"})

        assert expand("{a}", ctx) == "{b}"

    def test_mixed_token_kinds(self):
        """Both kinds expand in one string."""
        ctx = PluginContext(install_folder="/opt", variables={"port": "8080"})
        env = env_from({"HOME": "/home/app"})

        result = expand("{installFolder}:${HOME}:{port}:${INSTALL_FOLDER}", ctx, env)

        assert result == "/opt:/home/app:8080:/opt"

    def test_dollar_value_not_read_as_brace(self):
        """An unresolved ${X} is not partly expanded as {X}."""
        ctx = PluginContext(variables={"x": "brace"})

        assert expand("${Y}", ctx, no_env) == "${Y}"


class TestExpandList:
    """Test list expansion."""

    def test_expand_list(self):
        """Every element is expanded in order."""
        ctx = PluginContext(variables={"port": "4723"})

        assert expand_list(["--port", "{port}"], ctx) == ["--port", "4723"]

    def test_none_list(self):
        """None is returned unchanged."""
        assert expand_list(None, PluginContext()) is None

    def test_empty_list_is_new_list(self):
        """An empty input gives a new empty list."""
        items: list[str] = []
        result = expand_list(items, PluginContext())

        assert result == []
        assert result is not items


class TestExpandDict:
    """Test mapping expansion."""

    def test_keys_and_values_expanded(self):
        """Both keys and values are expanded, keeping insertion order."""
        ctx = PluginContext(install_folder="/opt", variables={"prefix": "APP"})

        result = expand_dict(
            {"{prefix}_HOME": "{installFolder}", "PATH": "/custom/path"}, ctx, no_env
        )

        assert result == {"APP_HOME": "/opt", "PATH": "/custom/path"}
        assert list(result) == ["APP_HOME", "PATH"]

    def test_none_mapping(self):
        """None is returned unchanged."""
        assert expand_dict(None, PluginContext()) is None
