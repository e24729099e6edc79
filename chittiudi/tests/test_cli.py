"""
Tests for the command-line interface.
"""

import json

import pytest

from ..cli import main
from ..config import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path, share_base_url="https://yourapp.com")


def run(settings, capsys, *argv):
    main(list(argv), settings=settings)
    return capsys.readouterr().out


def bowl_ids(settings):
    data = json.loads((settings.data_dir / "bowls.json").read_text(encoding="utf-8"))
    return list(data["bowls"])


class TestCli:
    """End-to-end CLI flows against a temporary data directory."""

    def test_name_and_whoami(self, settings, capsys):
        assert "Name set to Asha" in run(settings, capsys, "name", "Asha")

        out = run(settings, capsys, "whoami")
        assert "Name: Asha" in out
        assert "Device: " in out

    def test_create_needs_name(self, settings, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "Dinner"], settings=settings)

        assert exc_info.value.code == 1
        assert "Error [missing-name]" in capsys.readouterr().out

    def test_create_add_juggle(self, settings, capsys):
        run(settings, capsys, "name", "Asha")
        run(settings, capsys, "create", "Dinner")
        (bowl_id,) = bowl_ids(settings)

        for text in ["Pizza", "Tacos", "Sushi"]:
            run(settings, capsys, "add", bowl_id, text)
        out = run(settings, capsys, "juggle", bowl_id).strip()

        assert out in {"Pizza", "Tacos", "Sushi"}
        assert "Entries (2)" in run(settings, capsys, "show", bowl_id)

    def test_list(self, settings, capsys):
        run(settings, capsys, "name", "Asha")
        assert "No bowls yet" in run(settings, capsys, "list")

        run(settings, capsys, "create", "Dinner", "--type", "make_pairs")
        assert "Dinner [make_pairs]" in run(settings, capsys, "list")

    def test_create_type_by_name(self, settings, capsys):
        run(settings, capsys, "name", "Asha")
        run(settings, capsys, "create", "Santa", "--type", "SECRET_SANTA")

        assert "Santa [secret_santa]" in run(settings, capsys, "list")

    def test_create_unknown_type(self, settings, capsys):
        run(settings, capsys, "name", "Asha")
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "Dinner", "--type", "lottery"], settings=settings)
        assert exc_info.value.code == 2

    def test_share_and_open(self, settings, capsys, tmp_path):
        run(settings, capsys, "name", "Asha")
        run(settings, capsys, "create", "Trip")
        (bowl_id,) = bowl_ids(settings)
        out = run(settings, capsys, "share", bowl_id).strip()
        assert out == f"Check out this bowl! https://yourapp.com/bowl/{bowl_id}"

        # A second device sharing the same bowls file
        guest = tmp_path / "guest"
        guest.mkdir()
        (guest / "bowls.json").write_text(
            (settings.data_dir / "bowls.json").read_text(encoding="utf-8"), encoding="utf-8"
        )
        guest_settings = Settings(data_dir=guest)
        url = f"https://yourapp.com/bowl/{bowl_id}"

        assert "set your name first" in run(guest_settings, capsys, "open", url)
        assert f"Joined bowl {bowl_id}" in run(guest_settings, capsys, "name", "Ravi")
        assert "Already in bowl" in run(guest_settings, capsys, "open", url)

    def test_owner_only_commands(self, settings, capsys):
        run(settings, capsys, "name", "Asha")
        run(settings, capsys, "create", "Dinner")
        (bowl_id,) = bowl_ids(settings)
        run(settings, capsys, "add", bowl_id, "Pizza")

        assert "Bowl cleared" in run(settings, capsys, "clear", bowl_id)
        assert f"Deleted bowl {bowl_id}" in run(settings, capsys, "delete", bowl_id)
        assert bowl_ids(settings) == []

    def test_unknown_bowl(self, settings, capsys):
        with pytest.raises(SystemExit):
            main(["show", "missing"], settings=settings)
        assert "Error [bowl-not-found]" in capsys.readouterr().out

    def test_no_command_prints_help(self, settings, capsys):
        with pytest.raises(SystemExit):
            main([], settings=settings)
