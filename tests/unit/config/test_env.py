"""Tests for EnvReader."""

from pathlib import Path

from astfax.config.env import EnvReader


class TestEnvReader:
    """Tests for EnvReader type conversion."""

    def test_get_str_returns_value(self) -> None:
        """Set variables are returned unchanged."""
        reader = EnvReader(env={"ASTFAX_SERVER_NAME": "upstream01"})
        assert reader.get_str("ASTFAX_SERVER_NAME") == "upstream01"

    def test_empty_value_is_unset(self) -> None:
        """Empty strings fall back to the default."""
        reader = EnvReader(env={"ASTFAX_SERVER_NAME": ""})
        assert reader.get_str("ASTFAX_SERVER_NAME", "fallback") == "fallback"
        assert reader.get_int("ASTFAX_SERVER_NAME", 3) == 3

    def test_get_int_parses(self) -> None:
        reader = EnvReader(env={"ASTFAX_AST_UID": "112"})
        assert reader.get_int("ASTFAX_AST_UID", 0) == 112

    def test_get_int_invalid_returns_default(self) -> None:
        """Unparseable integers return the default instead of raising."""
        reader = EnvReader(env={"ASTFAX_AST_UID": "asterisk"})
        assert reader.get_int("ASTFAX_AST_UID", 0) == 0

    def test_get_float_parses(self) -> None:
        reader = EnvReader(env={"ASTFAX_UPDATE_INTERVAL": "2.5"})
        assert reader.get_float("ASTFAX_UPDATE_INTERVAL") == 2.5

    def test_get_path_expands_tilde(self) -> None:
        """Paths are expanded relative to the home directory."""
        reader = EnvReader(env={"ASTFAX_DATABASE_PATH": "~/faxes.db"})
        assert reader.get_path("ASTFAX_DATABASE_PATH") == Path.home() / "faxes.db"

    def test_get_args_uses_shell_quoting(self) -> None:
        """Argument lists are split with shell quoting rules."""
        reader = EnvReader(
            env={"ASTFAX_GS_ARGS": "-q -dNOPAUSE '-sPAPERSIZE=a4 landscape'"}
        )
        assert reader.get_args("ASTFAX_GS_ARGS") == (
            "-q",
            "-dNOPAUSE",
            "-sPAPERSIZE=a4 landscape",
        )

    def test_get_args_unbalanced_quotes_returns_default(self) -> None:
        reader = EnvReader(env={"ASTFAX_GS_ARGS": "-q 'unterminated"})
        assert reader.get_args("ASTFAX_GS_ARGS", ("-q",)) == ("-q",)
