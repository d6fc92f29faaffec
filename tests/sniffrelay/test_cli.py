"""Tests for the sniffrelay command line."""

import io
import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from relay_fakes import FakeResponse, make_session, split

from sniffrelay.cli import (
    StdoutDestination,
    build_options,
    build_parser,
    build_target,
    main,
    run_transfer,
)
from sniffrelay.config.config import RelayConfig, TransferDefaults
from sniffrelay.detection.classifier import TypeDescriptor
from sniffrelay.download.sinks import ExtensionTarget, FixedTarget

URL = "https://example.com/logo"


def parse(*argv):
    return build_parser().parse_args([URL, *argv])


def cli_session(response):
    session = make_session(response)
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=None)
    return session


class TestBuildTarget:
    def test_no_output(self):
        assert build_target(None) is None

    def test_stdout(self):
        target = build_target("-")

        assert isinstance(target, FixedTarget)
        assert isinstance(target.destination, StdoutDestination)

    def test_fixed_path(self):
        assert build_target("out/file.bin") == FixedTarget(Path("out/file.bin"))

    def test_extension_placeholder(self):
        target = build_target("downloads/logo.{ext}")

        assert isinstance(target, ExtensionTarget)
        assert target.resolve("png") == Path("downloads/logo.png")
        assert target.resolve(None) == Path("downloads/logo.bin")


class TestStdoutDestination:
    def test_write_and_flush(self):
        stream = io.BytesIO()
        destination = StdoutDestination(stream)

        destination.write(b"abc")
        destination.flush()

        assert stream.getvalue() == b"abc"
        assert not stream.closed


class TestBuildOptions:
    def test_defaults(self):
        options = build_options(parse(), RelayConfig())

        assert options.ignore_status is False
        assert options.filter is None
        assert options.target is None

    def test_ignore_status_from_flag_or_config(self):
        assert build_options(parse("--ignore-status"), RelayConfig()).ignore_status is True

        config = RelayConfig(transfer=TransferDefaults(ignore_status=True))
        assert build_options(parse(), config).ignore_status is True

    def test_allow_ext_builds_filter(self):
        options = build_options(parse("--allow-ext", "jpg", "gif"), RelayConfig())

        assert options.filter(TypeDescriptor(mime="image/gif", ext="gif"), b"", 200) is True
        assert options.filter(TypeDescriptor(mime="image/png", ext="png"), b"", 200) is False
        # Content types fall back to the built-in allowlist
        assert options.filter(TypeDescriptor(content_type="text/plain"), b"", 200) is True

    def test_require_signature_keeps_default_allowlists(self):
        options = build_options(parse("--require-signature"), RelayConfig())

        assert options.filter(TypeDescriptor(mime="image/png", ext="png"), b"", 200) is True
        assert options.filter(TypeDescriptor(content_type="text/plain"), b"", 200) is False

    def test_config_allowlists(self):
        config = RelayConfig(transfer=TransferDefaults(allowed_content_types=["text/html"]))

        options = build_options(parse(), config)

        assert options.filter(TypeDescriptor(content_type="text/html"), b"", 200) is True


class TestRunTransfer:
    @pytest.mark.asyncio
    async def test_detect_only_prints_type_and_stops(self, png_body, capsys):
        response = FakeResponse(
            headers={"Content-Type": "image/png"}, chunks=split(png_body, 64), stall_after=1
        )
        session = cli_session(response)

        with patch("sniffrelay.cli.create_session", return_value=session):
            code = await run_transfer(parse(), RelayConfig())

        assert code == 0
        printed = json.loads(capsys.readouterr().out)
        assert printed == {"mime": "image/png", "ext": "png", "content_type": "image/png"}
        session.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_download_with_extension(self, tmp_path, png_body, capsys):
        session = cli_session(FakeResponse(chunks=split(png_body, 64)))
        output = str(tmp_path / "logo.{ext}")

        with patch("sniffrelay.cli.create_session", return_value=session):
            code = await run_transfer(parse("-o", output), RelayConfig())

        assert code == 0
        assert (tmp_path / "logo.png").read_bytes() == png_body
        printed = json.loads(capsys.readouterr().out)
        assert printed["ext"] == "png"
        assert printed["bytes"] == len(png_body)

    @pytest.mark.asyncio
    async def test_rejected_transfer(self, tmp_path, png_body):
        session = cli_session(FakeResponse(status=404, chunks=[png_body]))
        output = tmp_path / "logo.bin"

        with patch("sniffrelay.cli.create_session", return_value=session):
            code = await run_transfer(parse("-o", str(output)), RelayConfig())

        assert code == 1
        assert not output.exists()

    @pytest.mark.asyncio
    async def test_filtered_type(self, tmp_path, png_body):
        session = cli_session(FakeResponse(chunks=[png_body]))

        with patch("sniffrelay.cli.create_session", return_value=session):
            code = await run_transfer(
                parse("--allow-ext", "pdf", "-o", str(tmp_path / "x.{ext}")), RelayConfig()
            )

        assert code == 1
        assert list(tmp_path.iterdir()) == []


class TestMain:
    def test_config_error(self, tmp_path, capsys):
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("http:\n  unknown_key: 1\n")

        code = main([URL, "--config", str(config_path)])

        assert code == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_null_config_value_is_config_error(self, tmp_path, capsys):
        config_path = tmp_path / "null.yaml"
        config_path.write_text("http:\n  chunk_size: null\n")

        code = main([URL, "--config", str(config_path)])

        assert code == 2
        assert "chunk_size must not be null" in capsys.readouterr().err

    def test_runs_transfer(self, tmp_path):
        with patch("sniffrelay.cli.setup_logging") as setup, patch(
            "sniffrelay.cli.run_transfer", new=AsyncMock(return_value=0)
        ) as runner:
            code = main([URL, "--config", str(tmp_path / "missing.yaml"), "-v"])

        assert code == 0
        runner.assert_awaited_once()
        assert setup.call_args[1]["level"] == 10

    def test_keyboard_interrupt(self, tmp_path):
        with patch("sniffrelay.cli.setup_logging"), patch(
            "sniffrelay.cli.run_transfer", new=AsyncMock(side_effect=KeyboardInterrupt)
        ):
            code = main([URL, "--config", str(tmp_path / "missing.yaml")])

        assert code == 130
