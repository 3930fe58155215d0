"""
Tests for the command-line front end.

main() is driven with argv lists and a client_factory returning the fake
gateway, so nothing touches the network. Output is checked with capsys:
results on stdout, progress and errors on stderr.
"""

import argparse
import json
import signal
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from adapters.gemini import GeminiClient
import cli
from cli import BASH_COMPLETION_SCRIPT, CommandContext, complete_words, main
from completion import Completer
from config import Settings
from models import BatchResult, ErrorKind, FileSearchError
from tests.helpers import make_operation, make_store


@pytest.fixture
def env(isolated_env: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    return isolated_env


def run(argv: list[str], gateway: MagicMock) -> int:
    return main(argv, client_factory=lambda api_key: gateway)


@pytest.mark.usefixtures("env")
class TestStoreCommands:

    def test_list_text(self, gateway: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(["store", "list"], gateway) == 0
        assert capsys.readouterr().out == (
            "Research (fileSearchStores/research-1)\n"
            "Notes (fileSearchStores/notes-1)\n"
            "Research (fileSearchStores/research-2)\n"
        )

    @pytest.mark.parametrize("argv", [
        ["--format", "json", "store", "list"],
        ["store", "list", "--format", "json"],
    ])
    def test_list_json_flag_anywhere(self, argv: list[str], gateway: MagicMock,
                                     capsys: pytest.CaptureFixture[str]) -> None:
        assert run(argv, gateway) == 0
        data = json.loads(capsys.readouterr().out)
        assert [store["name"] for store in data] == [
            "fileSearchStores/research-1",
            "fileSearchStores/notes-1",
            "fileSearchStores/research-2",
        ]

    def test_create(self, gateway: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        gateway.create_store.return_value = make_store("fileSearchStores/new-1", "Papers")
        assert run(["store", "create", "Papers"], gateway) == 0
        assert capsys.readouterr().out == "Created store: Papers (fileSearchStores/new-1)\n"

    def test_create_quiet(self, gateway: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        gateway.create_store.return_value = make_store("fileSearchStores/new-1", "Papers")
        assert run(["store", "create", "Papers", "-q"], gateway) == 0
        assert capsys.readouterr().out == ""

    def test_delete_by_display_name(self, gateway: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(["store", "delete", "Notes", "--force"], gateway) == 0
        gateway.delete_store.assert_called_once_with("fileSearchStores/notes-1", force=True)
        assert capsys.readouterr().out == "Deleted store: fileSearchStores/notes-1\n"

    def test_remote_rejection_reported(self, gateway: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        gateway.delete_store.side_effect = FileSearchError(
            ErrorKind.REMOTE_REJECTION, "Cannot delete non-empty store"
        )
        assert run(["store", "delete", "fileSearchStores/notes-1"], gateway) == 1
        assert capsys.readouterr().err == "Error: Cannot delete non-empty store\n"

    def test_unknown_store(self, gateway: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(["store", "get", "Missing"], gateway) == 1
        assert capsys.readouterr().err == "Error: store not found: Missing\n"

    def test_import_requires_store(self, gateway: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(["store", "import-file", "paper.pdf"], gateway) == 1
        assert capsys.readouterr().err == "Error: either --store or --store-id is required\n"
        gateway.import_file.assert_not_called()

    def test_import_single_file(self, gateway: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        gateway.import_file.return_value = make_operation(done=True)
        assert run(["store", "import-file", "paper.pdf", "--store", "Notes"], gateway) == 0
        gateway.import_file.assert_called_once_with("files/abc", "fileSearchStores/notes-1")
        captured = capsys.readouterr()
        assert captured.out.endswith("Imported file: paper.pdf to store: fileSearchStores/notes-1\n")
        assert "[1/1] ✓ Finished: paper.pdf" in captured.err

    def test_store_id_used_as_given(self, gateway: MagicMock) -> None:
        gateway.import_file.return_value = make_operation(done=True)
        assert run(["store", "import-file", "files/abc", "--store-id", "fileSearchStores/zzz", "-q"],
                   gateway) == 0
        gateway.import_file.assert_called_once_with("files/abc", "fileSearchStores/zzz")
        gateway.list_stores.assert_not_called()

    def test_store_beats_store_id(self, gateway: MagicMock) -> None:
        gateway.import_file.return_value = make_operation(done=True)
        assert run(["store", "import-file", "files/abc", "--store", "Notes",
                    "--store-id", "fileSearchStores/zzz", "-q"], gateway) == 0
        gateway.import_file.assert_called_once_with("files/abc", "fileSearchStores/notes-1")

    def test_missing_store_is_ambiguous(self, gateway: MagicMock) -> None:
        ctx = CommandContext(argparse.Namespace(store=None, store_id=None),
                             Settings(api_key="test-key"), lambda api_key: gateway)
        assert ctx.store_from_args() is None
        with pytest.raises(FileSearchError) as exc_info:
            ctx.store_from_args(required=True)
        assert exc_info.value.kind == ErrorKind.AMBIGUOUS_INPUT


@pytest.mark.usefixtures("env")
class TestAuth:

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch, gateway: MagicMock,
                             capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.delenv("GEMINI_API_KEY")
        factory = MagicMock(return_value=gateway)
        assert main(["store", "list"], client_factory=factory) == 1
        assert capsys.readouterr().err.startswith("Error: API key not set.")
        factory.assert_not_called()

    def test_api_key_flag(self, monkeypatch: pytest.MonkeyPatch, gateway: MagicMock) -> None:
        monkeypatch.delenv("GEMINI_API_KEY")
        factory = MagicMock(return_value=gateway)
        assert main(["store", "list", "--api-key", "flag-key"], client_factory=factory) == 0
        factory.assert_called_once_with("flag-key")

    def test_api_key_env_flag(self, monkeypatch: pytest.MonkeyPatch, gateway: MagicMock) -> None:
        monkeypatch.setenv("MY_GEMINI_KEY", "named-key")
        factory = MagicMock(return_value=gateway)
        assert main(["--api-key-env", "MY_GEMINI_KEY", "file", "list"], client_factory=factory) == 0
        factory.assert_called_once_with("named-key")


@pytest.mark.usefixtures("env")
class TestFileUpload:

    @pytest.fixture
    def paths(self, tmp_path: Path) -> list[str]:
        result = []
        for name in ("a.txt", "b.txt", "c.txt"):
            path = tmp_path / name
            path.write_text(name)
            result.append(str(path))
        return result

    def test_name_with_multiple_files(self, gateway: MagicMock, paths: list[str],
                                      capsys: pytest.CaptureFixture[str]) -> None:
        assert run(["file", "upload", *paths, "--name", "x"], gateway) == 1
        assert capsys.readouterr().err == "Error: cannot use --name with multiple files\n"
        gateway.upload_file.assert_not_called()

    def test_single_upload_without_store(self, gateway: MagicMock, paths: list[str],
                                         capsys: pytest.CaptureFixture[str]) -> None:
        gateway.upload_file.return_value = SimpleNamespace(name="files/new")
        assert run(["file", "upload", paths[0], "--mime-type", "text/plain"], gateway) == 0
        gateway.upload_file.assert_called_once_with(paths[0], display_name="a.txt",
                                                    mime_type="text/plain")
        assert capsys.readouterr().out == f"Uploaded file: {paths[0]}\n"

    def test_upload_options_reach_gateway(self, gateway: MagicMock, paths: list[str]) -> None:
        gateway.upload_to_store.return_value = make_operation(done=True)
        assert run([
            "file", "upload", paths[0], "--store", "Research", "--name", "Alpha",
            "--chunk-size", "256", "--chunk-overlap", "32",
            "--metadata", "author=Smith", "--metadata", "year=2024", "-q",
        ], gateway) == 0
        path, store, options = gateway.upload_to_store.call_args.args
        assert (path, store) == (paths[0], "fileSearchStores/research-1")
        assert options.display_name == "Alpha"
        assert options.max_chunk_tokens == 256
        assert options.chunk_overlap_tokens == 32
        assert options.metadata == {"author": "Smith", "year": "2024"}

    def test_partial_failure_exits_non_zero(self, gateway: MagicMock, paths: list[str],
                                            capsys: pytest.CaptureFixture[str]) -> None:
        def upload(path, store_name, options):
            if path.endswith("b.txt"):
                raise FileSearchError(ErrorKind.RATE_LIMITED, "quota exceeded")
            return make_operation(done=True)

        gateway.upload_to_store.side_effect = upload

        assert run(["file", "upload", *paths, "--store-id", "fileSearchStores/s1"], gateway) == 1

        captured = capsys.readouterr()
        assert "Summary:\n  ✓ Succeeded: 2\n  ✗ Failed: 1" in captured.out
        assert f"Failed files:\n  - {paths[1]}: quota exceeded" in captured.out
        assert captured.err.endswith("Error: some files failed to upload\n")
        assert captured.err.count("✓ Finished") == 2

    def test_json_batch_report(self, gateway: MagicMock, paths: list[str],
                               capsys: pytest.CaptureFixture[str]) -> None:
        gateway.upload_to_store.return_value = make_operation(done=True)
        assert run(["file", "upload", paths[0], "--store-id", "fileSearchStores/s1",
                    "--format", "json", "-q"], gateway) == 0
        assert json.loads(capsys.readouterr().out) == {
            "total": 1,
            "succeeded": 1,
            "failed": 0,
            "files": [{"file": paths[0], "status": "success", "store": "fileSearchStores/s1"}],
        }

    def test_interrupt_stops_dispatch(self, gateway: MagicMock, paths: list[str],
                                      monkeypatch: pytest.MonkeyPatch,
                                      capsys: pytest.CaptureFixture[str]) -> None:
        def interrupted(client, items, store_name, options, **kwargs):
            signal.raise_signal(signal.SIGINT)
            assert kwargs["cancel_event"].is_set()
            return BatchResult(succeeded=[items[0]], total=len(items))

        monkeypatch.setattr(cli, "do_upload_files", interrupted)
        previous = signal.getsignal(signal.SIGINT)

        assert run(["file", "upload", *paths], gateway) == 1

        captured = capsys.readouterr()
        assert "Summary:\n  ✓ Succeeded: 1\n  ✗ Failed: 0" in captured.out
        assert "Cancelling: waiting for in-flight items..." in captured.err
        assert captured.err.endswith("Error: upload cancelled\n")
        assert signal.getsignal(signal.SIGINT) is previous

    def test_second_interrupt_aborts(self, gateway: MagicMock, paths: list[str],
                                     monkeypatch: pytest.MonkeyPatch,
                                     capsys: pytest.CaptureFixture[str]) -> None:
        def stalled(client, items, store_name, options, **kwargs):
            signal.raise_signal(signal.SIGINT)
            signal.raise_signal(signal.SIGINT)
            raise AssertionError("second interrupt did not abort")

        monkeypatch.setattr(cli, "do_upload_files", stalled)
        previous = signal.getsignal(signal.SIGINT)

        assert run(["file", "upload", *paths, "--store-id", "fileSearchStores/s1"], gateway) == 130

        assert capsys.readouterr().err.endswith("Interrupted\n")
        assert signal.getsignal(signal.SIGINT) is previous


@pytest.mark.usefixtures("env")
class TestDocumentCommands:

    def test_get_by_display_name_needs_store(self, gateway: MagicMock,
                                             capsys: pytest.CaptureFixture[str]) -> None:
        assert run(["document", "get", "paper.pdf"], gateway) == 1
        assert "a store is required" in capsys.readouterr().err

    def test_delete_with_store(self, gateway: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(["document", "delete", "paper.pdf", "--store", "Research"], gateway) == 0
        gateway.delete_document.assert_called_once_with(
            "fileSearchStores/research-1/documents/d1", force=False
        )
        assert capsys.readouterr().out == "Deleted document: fileSearchStores/research-1/documents/d1\n"

    def test_list_requires_store(self, gateway: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(["document", "list"], gateway) == 1
        assert capsys.readouterr().err == "Error: either --store or --store-id is required\n"


@pytest.mark.usefixtures("env")
class TestQueryCommand:

    @pytest.fixture
    def response(self) -> SimpleNamespace:
        return SimpleNamespace(candidates=[SimpleNamespace(
            content=SimpleNamespace(parts=[SimpleNamespace(text="Forty-two.")]),
            grounding_metadata=SimpleNamespace(grounding_chunks=[]),
        )])

    def test_text(self, gateway: MagicMock, response: SimpleNamespace,
                  capsys: pytest.CaptureFixture[str]) -> None:
        gateway.query.return_value = response
        assert run(["query", "What?", "--store", "Research"], gateway) == 0
        assert capsys.readouterr().out == "Forty-two.\n\n[Grounding Metadata]\n"

    def test_json_debug_includes_metadata(self, gateway: MagicMock, response: SimpleNamespace,
                                          capsys: pytest.CaptureFixture[str]) -> None:
        gateway.query.return_value = response
        assert run(["query", "What?", "--model", "gemini-2.5-pro", "--format", "json", "--debug"],
                   gateway) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["answer"] == "Forty-two."
        assert data["model"] == "gemini-2.5-pro"
        assert data["grounding_metadata"] == {"grounding_chunks": []}


@pytest.mark.usefixtures("env")
class TestOperationCommand:
    """operation get runs through the real adapter so name validation is exercised."""

    @pytest.fixture
    def genai_client(self) -> MagicMock:
        return MagicMock()

    def _run(self, argv: list[str], genai_client: MagicMock) -> int:
        return main(argv, client_factory=lambda api_key: GeminiClient(genai_client))

    def test_malformed_name(self, genai_client: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        assert self._run(["operation", "get", "operations/op1"], genai_client) == 1
        assert capsys.readouterr().err == (
            "Error: invalid operation name: must start with 'fileSearchStores/'\n"
        )
        genai_client.operations.get.assert_not_called()

    def test_invalid_type(self, genai_client: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        assert self._run(["operation", "get", "fileSearchStores/s/operations/o", "--type", "export"],
                         genai_client) == 1
        assert capsys.readouterr().err == (
            "Error: invalid operation type: export (must be 'import' or 'upload')\n"
        )

    def test_status(self, genai_client: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        genai_client.operations.get.return_value = make_operation(
            "fileSearchStores/s/operations/o", done=False
        )
        assert self._run(["operation", "get", "fileSearchStores/s/operations/o", "--type", "import"],
                         genai_client) == 0
        assert capsys.readouterr().out == (
            "Operation: fileSearchStores/s/operations/o\nType: import\nStatus: PENDING\n"
        )


class TestCompletion:

    @pytest.fixture
    def completer(self) -> MagicMock:
        completer = MagicMock(spec=Completer)
        completer.store_names.return_value = ["Research", "Notes"]
        completer.file_names.return_value = ["paper.pdf", "notes.txt"]
        completer.document_names.return_value = ["paper.pdf"]
        completer.model_names.return_value = ["gemini-2.5-flash", "gemini-2.5-pro"]
        return completer

    def test_commands(self, completer: MagicMock) -> None:
        assert complete_words(["st"], completer) == ["store"]
        assert "query" in complete_words([""], completer)

    def test_subcommands(self, completer: MagicMock) -> None:
        assert complete_words(["store", "im"], completer) == ["import-file"]

    def test_store_names_after_flag(self, completer: MagicMock) -> None:
        assert complete_words(["query", "what", "--store", "Re"], completer) == ["Research"]

    def test_store_positional(self, completer: MagicMock) -> None:
        assert complete_words(["store", "delete", ""], completer) == ["Research", "Notes"]

    def test_file_positional(self, completer: MagicMock) -> None:
        assert complete_words(["file", "get", "pa"], completer) == ["paper.pdf"]

    def test_documents_scoped_by_store(self, completer: MagicMock) -> None:
        assert complete_words(["document", "get", "--store", "Research", ""], completer) == ["paper.pdf"]
        completer.document_names.assert_called_once_with("Research")

    def test_documents_without_store(self, completer: MagicMock) -> None:
        assert complete_words(["document", "get", ""], completer) == []
        completer.document_names.assert_not_called()

    def test_models(self, completer: MagicMock) -> None:
        assert complete_words(["query", "q", "--model", "gemini-2.5-p"], completer) == ["gemini-2.5-pro"]

    def test_static_values(self, completer: MagicMock) -> None:
        assert complete_words(["store", "list", "--format", ""], completer) == ["text", "json"]
        assert complete_words(["operation", "get", "x", "--type", "u"], completer) == ["upload"]

    def test_global_option_values_are_skipped(self, completer: MagicMock) -> None:
        assert complete_words(["--format", "json", "st"], completer) == ["store"]
        assert complete_words(["--config", "c.yaml", "store", "de"], completer) == ["delete"]
        assert complete_words(["--store-id", "fileSearchStores/s1", "file", "get", "no"],
                              completer) == ["notes.txt"]

    def test_free_form_option_values_get_no_suggestions(self, completer: MagicMock) -> None:
        assert complete_words(["file", "upload", "a.txt", "--name", ""], completer) == []

    def test_hidden_command_without_key(self, isolated_env: Path,
                                        capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["__complete", "ver"]) == 0
        assert capsys.readouterr().out == "version\n"

    def test_bash_script(self, isolated_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["completion", "bash"]) == 0
        out = capsys.readouterr().out
        assert out == BASH_COMPLETION_SCRIPT
        assert "complete -o default -F _file_search_complete file-search" in out


class TestVersion:

    def test_version(self, isolated_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["version"]) == 0
        assert capsys.readouterr().out.startswith("file-search ")

    def test_bad_completion_ttl_does_not_block_commands(self, isolated_env: Path,
                                                        monkeypatch: pytest.MonkeyPatch,
                                                        capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.setenv("COMPLETION_CACHE_TTL", "soon")
        assert main(["version"]) == 0
        assert capsys.readouterr().out.startswith("file-search ")
