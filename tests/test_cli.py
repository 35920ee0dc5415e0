"""Tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from crm_deals.cli.main import main


def _write_json(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestTransformCommand:
    """Tests for `crm-deals transform`."""

    def test_prints_deals_and_contacts(
        self, tmp_path: Path, pipedrive_deal: dict, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Output JSON has deals and dealContacts."""
        src = _write_json(tmp_path / "in.json", [pipedrive_deal])
        main(["transform", "--platform", "pipedrive", "--input", str(src), "--account-id", "acct"])
        data = json.loads(capsys.readouterr().out)
        assert data["deals"][0]["stage"] == "demo"
        assert data["deals"][0]["account_id"] == "acct"
        assert data["dealContacts"][0]["deal_id"] == data["deals"][0]["id"]

    def test_writes_output_and_store(self, tmp_path: Path, temp_db: Path, folk_person: dict) -> None:
        """--output writes the file and --store persists the batch."""
        src = _write_json(tmp_path / "in.json", [folk_person])
        out = tmp_path / "out.json"
        main(
            [
                "transform",
                "--platform",
                "folk",
                "--input",
                str(src),
                "--output",
                str(out),
                "--store",
                str(temp_db),
            ]
        )
        data = json.loads(out.read_text())
        assert data["deals"][0]["company_name"] == "X Corp"

        from crm_deals.store import DealStore

        assert DealStore(temp_db).count() == 1

    def test_display_output(
        self, tmp_path: Path, hubspot_deal: dict, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """--display emits board cards."""
        src = _write_json(tmp_path / "in.json", [hubspot_deal])
        main(["transform", "--platform", "hubspot", "--input", str(src), "--display"])
        cards = json.loads(capsys.readouterr().out)
        assert cards[0]["stageName"] == "Demo"
        assert cards[0]["value"] == "$7,500"
        assert cards[0]["contact"] == "Bill Lumbergh"

    def test_unsupported_platform_exits(self, tmp_path: Path) -> None:
        """Unknown platforms exit with the error message."""
        src = _write_json(tmp_path / "in.json", [])
        with pytest.raises(SystemExit, match="Unsupported platform: salesloft"):
            main(["transform", "--platform", "salesloft", "--input", str(src)])

    def test_invalid_json_exits(self, tmp_path: Path) -> None:
        """Unreadable input exits."""
        src = tmp_path / "bad.json"
        src.write_text("{not json", encoding="utf-8")
        with pytest.raises(SystemExit, match="Could not read"):
            main(["transform", "--platform", "folk", "--input", str(src)])


class TestStoreCommand:
    """Tests for `crm-deals store`."""

    def test_count_and_list(
        self, tmp_path: Path, temp_db: Path, salesforce_deal: dict, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """count and list read back stored deals."""
        src = _write_json(tmp_path / "in.json", [salesforce_deal])
        main(["transform", "--platform", "salesforce", "--input", str(src), "--store", str(temp_db)])
        capsys.readouterr()

        main(["store", "count", "--db", str(temp_db)])
        out = capsys.readouterr().out
        assert "deals: 1" in out
        assert "deal_contacts: 1" in out

        main(["store", "list", "--db", str(temp_db), "--display"])
        cards = json.loads(capsys.readouterr().out)
        assert cards[0]["stage"] == "negotiation"
        assert cards[0]["email"] == "hank@globex.com"


class TestPlatformsCommand:
    """Tests for `crm-deals platforms`."""

    def test_lists_platforms(self, capsys: pytest.CaptureFixture[str]) -> None:
        """All supported platforms are printed."""
        main(["platforms"])
        out = capsys.readouterr().out.split()
        assert out == ["pipedrive", "salesforce", "hubspot", "zoho", "folk"]


class TestImportCommand:
    """Tests for `crm-deals import`."""

    def test_import_uses_settings_and_db(
        self, tmp_path: Path, temp_db: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """import builds settings from YAML and flags, then runs the pipeline."""
        from crm_deals.models.deal import TransformResult

        settings_path = tmp_path / "settings.yaml"
        settings_path.write_text("account:\n  account_id: acct-1\ncrm:\n  access_token: tok\n")
        with patch("crm_deals.pipeline.run_import", return_value=TransformResult()) as mock_run:
            main(["import", "--platform", "pipedrive", "--settings", str(settings_path), "--db", str(temp_db)])
        settings = mock_run.call_args.args[0]
        assert settings.platform == "pipedrive"
        assert settings.account_id == "acct-1"
        assert settings.access_token == "tok"
        assert mock_run.call_args.kwargs["db_path"] == temp_db
        assert "Imported 0 deals" in capsys.readouterr().out

    def test_import_requires_platform(self) -> None:
        """import without a platform exits."""
        with pytest.raises(SystemExit, match="requires --platform"):
            main(["import"])
