"""Tests for the CA state directory."""

from typing import TYPE_CHECKING

import pytest

from ca_tool.lib.ca_state import CAState, render_openssl_config
from ca_tool.lib.config import CAConfig

if TYPE_CHECKING:
    from conftest import FakeRunner


class TestEnsure:
    """Tests for CAState.ensure()."""

    def test_creates_all_files(self, ca_config: CAConfig, fake_runner: "FakeRunner") -> None:
        """A fresh home gets config, serial, index, seed and newcerts/."""
        state = CAState(ca_config, fake_runner)
        state.ensure()

        assert state.config_path.is_file()
        assert state.serial_path.read_text() == "01\n"
        assert state.index_path.is_file()
        assert state.index_path.stat().st_size == 0
        assert state.new_certs_dir.is_dir()
        assert state.rand_path.stat().st_size >= ca_config.key_size

    def test_seed_generated_with_openssl_rand(
        self, ca_config: CAConfig, fake_runner: "FakeRunner"
    ) -> None:
        """The randomness seed comes from `openssl rand`."""
        CAState(ca_config, fake_runner).ensure()

        assert fake_runner.commands == [
            ["rand", "-out", str(ca_config.home / ".rand"), str(ca_config.key_size)]
        ]

    def test_existing_serial_is_kept(self, ca_config: CAConfig, fake_runner: "FakeRunner") -> None:
        """An advanced serial counter is never reset."""
        state = CAState(ca_config, fake_runner)
        state.ensure()
        state.serial_path.write_text("1F\n")

        state.ensure()

        assert state.read_serial() == 0x1F

    def test_invalid_serial_raises(self, ca_config: CAConfig, fake_runner: "FakeRunner") -> None:
        """A corrupt serial file is an error, not a reset."""
        state = CAState(ca_config, fake_runner)
        state.ensure()
        state.serial_path.write_text("not-a-number\n")

        with pytest.raises(ValueError, match="serial file is not a hex number"):
            state.ensure()

    def test_short_seed_is_regenerated(
        self, ca_config: CAConfig, fake_runner: "FakeRunner"
    ) -> None:
        """A seed file shorter than the key length is replaced."""
        state = CAState(ca_config, fake_runner)
        state.ensure()
        state.rand_path.write_bytes(b"short")
        fake_runner.commands.clear()

        state.ensure()

        assert fake_runner.subcommands() == ["rand"]
        assert state.rand_path.stat().st_size >= ca_config.key_size

    def test_second_run_runs_nothing(self, ca_config: CAConfig, fake_runner: "FakeRunner") -> None:
        """A complete state directory needs no openssl invocations."""
        state = CAState(ca_config, fake_runner)
        state.ensure()
        fake_runner.commands.clear()

        state.ensure()

        assert fake_runner.commands == []

    def test_existing_config_is_preserved(
        self, ca_config: CAConfig, fake_runner: "FakeRunner"
    ) -> None:
        """Local edits to openssl.cnf survive later runs."""
        state = CAState(ca_config, fake_runner)
        state.ensure()
        state.config_path.write_text("# customised\n")

        state.ensure()

        assert state.config_path.read_text() == "# customised\n"


class TestRenderConfig:
    """Tests for openssl.cnf rendering."""

    def test_points_at_home(self, ca_config: CAConfig) -> None:
        """The CA_default dir is the resolved home path."""
        text = render_openssl_config(ca_config)
        assert f"dir = {ca_config.home.resolve()}\n" in text
        assert "database = $dir/index.txt" in text
        assert "serial = $dir/serial" in text

    @pytest.mark.parametrize(
        "section",
        ["v3_ca", "v3_intermediate_ca", "usr_cert", "server_cert", "client_cert", "client_server_cert"],
    )
    def test_extension_sections_present(self, ca_config: CAConfig, section: str) -> None:
        """Every extension section the builder references exists."""
        assert f"[ {section} ]" in render_openssl_config(ca_config)

    def test_intermediate_pathlen_zero(self, ca_config: CAConfig) -> None:
        """Intermediate CAs may only sign end-entity certificates."""
        text = render_openssl_config(ca_config)
        assert "basicConstraints = critical, CA:true, pathlen:0" in text

    def test_duplicate_subjects_allowed(self, ca_config: CAConfig) -> None:
        """Re-issuing for the same subject does not trip the index."""
        assert "unique_subject = no" in render_openssl_config(ca_config)
