import io
import tempfile
import unittest
from contextlib import redirect_stdout
from io import StringIO
from pathlib import Path
from unittest import mock

from rich.console import Console

from prsearch.cli import app as cli_app
from prsearch.cli.app import PrsearchCLI, build_parser, main
from prsearch.cli.picker import PickerState
from prsearch.core import session_log
from prsearch.core.changes import ChangeSet
from prsearch.errors import NoDefaultBranchError, NoRepositoryError


class FakeResolver:
    def __init__(self, result: ChangeSet | Exception) -> None:
        self.result = result
        self.calls: list[object] = []

    async def resolve(self, cwd):  # type: ignore[no-untyped-def]
        self.calls.append(cwd)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FakePicker:
    instances: list["FakePicker"] = []

    def __init__(self, candidates, *, title=None, limit=200, answer=None, query=""):  # type: ignore[no-untyped-def]
        self.state = PickerState(candidates, limit=limit)
        self.state.set_query(query)
        self.title = title
        self.answer = answer
        FakePicker.instances.append(self)

    async def run(self):  # type: ignore[no-untyped-def]
        return self.answer


def _picker_returning(answer, query=""):  # type: ignore[no-untyped-def]
    def factory(candidates, **kwargs):  # type: ignore[no-untyped-def]
        return FakePicker(candidates, answer=answer, query=query, **kwargs)

    return factory


class CLITests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        (self.root / "src").mkdir()
        (self.root / "src" / "extension.ts").write_text("x\n", encoding="utf-8")
        self.output = StringIO()
        self.console = Console(file=self.output, force_terminal=False, color_system=None, width=120)
        FakePicker.instances = []

    def tearDown(self) -> None:
        session_log.set_active_logger(None)
        self._tmp.cleanup()

    def _change_set(self, files: tuple[str, ...]) -> ChangeSet:
        return ChangeSet(
            root=self.root,
            current_branch="feature",
            default_branch="main",
            merge_base="abc",
            files=files,
        )

    def _cli(self, resolver: FakeResolver, picker_factory=None, environ=None) -> PrsearchCLI:  # type: ignore[no-untyped-def]
        return PrsearchCLI(
            self.root,
            self.console,
            environ=environ or {},
            resolver=resolver,  # type: ignore[arg-type]
            picker_factory=picker_factory,
        )

    async def test_run_query_prints_ranked_files(self) -> None:
        resolver = FakeResolver(
            self._change_set(("README.md", "test/extension.test.ts", "src/extension.ts"))
        )
        code = await self._cli(resolver).run_query("ext ts")
        self.assertEqual(code, 0)
        lines = [line for line in self.output.getvalue().splitlines() if line]
        self.assertEqual(lines, ["src/extension.ts", "test/extension.test.ts"])
        self.assertEqual(resolver.calls, [self.root])

    async def test_resolve_runs_under_status_spinner(self) -> None:
        resolver = FakeResolver(self._change_set(("a.py",)))
        cli = self._cli(resolver)
        with mock.patch.object(self.console, "status", wraps=self.console.status) as status:
            change_set = await cli.resolve()
        status.assert_called_once_with(cli_app.RESOLVE_STATUS, spinner="dots")
        self.assertEqual(change_set.files, ("a.py",))

    async def test_run_list_keeps_resolved_order(self) -> None:
        resolver = FakeResolver(self._change_set(("b.py", "a.py")))
        code = await self._cli(resolver).run_list()
        self.assertEqual(code, 0)
        lines = [line for line in self.output.getvalue().splitlines() if line]
        self.assertEqual(lines, ["b.py", "a.py"])

    async def test_resolver_error_reported(self) -> None:
        resolver = FakeResolver(NoDefaultBranchError(("main", "master")))
        code = await self._cli(resolver).run()
        self.assertEqual(code, 1)
        self.assertIn("No local main or master branch found.", self.output.getvalue())

    async def test_no_repository_reported_in_query_mode(self) -> None:
        resolver = FakeResolver(NoRepositoryError(self.root))
        code = await self._cli(resolver).run_query("x")
        self.assertEqual(code, 1)
        self.assertIn("No git repository found", self.output.getvalue())

    async def test_empty_change_set_shows_message_without_picker(self) -> None:
        resolver = FakeResolver(self._change_set(()))
        code = await self._cli(resolver, _picker_returning("never")).run()
        self.assertEqual(code, 0)
        self.assertIn("No changed files found", self.output.getvalue())
        self.assertEqual(FakePicker.instances, [])

    async def test_selected_file_printed_without_editor(self) -> None:
        resolver = FakeResolver(self._change_set(("src/extension.ts",)))
        cli = self._cli(resolver, _picker_returning("src/extension.ts", "ext"))
        code = await cli.run()
        self.assertEqual(code, 0)
        self.assertIn(str(self.root / "src" / "extension.ts"), self.output.getvalue())
        self.assertEqual(FakePicker.instances[0].title, "feature vs main (1 files)")

    async def test_selected_file_opened_with_editor(self) -> None:
        resolver = FakeResolver(self._change_set(("src/extension.ts",)))
        cli = self._cli(
            resolver, _picker_returning("src/extension.ts"), environ={"EDITOR": "myeditor"}
        )
        with mock.patch.object(cli_app, "open_file", new=mock.AsyncMock()) as opener:
            opener.return_value = self.root / "src" / "extension.ts"
            code = await cli.run()
        self.assertEqual(code, 0)
        opener.assert_awaited_once_with(self.root, "src/extension.ts", "myeditor")
        self.assertNotIn("extension.ts", self.output.getvalue())

    async def test_cancelled_picker_opens_nothing(self) -> None:
        resolver = FakeResolver(self._change_set(("src/extension.ts",)))
        cli = self._cli(resolver, _picker_returning(None))
        with mock.patch.object(cli_app, "open_file", new=mock.AsyncMock()) as opener:
            code = await cli.run()
        self.assertEqual(code, 0)
        opener.assert_not_awaited()

    async def test_open_failure_reported(self) -> None:
        resolver = FakeResolver(self._change_set(("src/gone.ts",)))
        code = await self._cli(resolver, _picker_returning("src/gone.ts")).run()
        self.assertEqual(code, 1)
        self.assertIn("Could not open src/gone.ts", self.output.getvalue())

    async def test_max_results_passed_to_picker(self) -> None:
        resolver = FakeResolver(self._change_set(("a.py", "b.py")))
        cli = self._cli(
            resolver, _picker_returning(None), environ={"PRSEARCH_MAX_RESULTS": "1"}
        )
        await cli.run()
        self.assertEqual(FakePicker.instances[0].state.limit, 1)


class ParserTests(unittest.TestCase):
    def test_query_and_list_are_exclusive(self) -> None:
        parser = build_parser()
        with redirect_stdout(io.StringIO()), mock.patch("sys.stderr", io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                parser.parse_args(["--query", "x", "--list"])
        self.assertEqual(ctx.exception.code, 2)

    def test_debug_without_level_means_all(self) -> None:
        args = build_parser().parse_args(["--debug"])
        self.assertEqual(args.debug, "all")

    def test_main_runs_query_mode(self) -> None:
        with mock.patch.object(cli_app, "PrsearchCLI") as cli_cls:
            cli_cls.return_value.run_query = mock.AsyncMock(return_value=0)
            with self.assertRaises(SystemExit) as ctx:
                main(["-C", "/tmp", "--query", "ext"])
        self.assertEqual(ctx.exception.code, 0)
        cli_cls.return_value.run_query.assert_awaited_once_with("ext")
        args, kwargs = cli_cls.call_args
        self.assertEqual(args[0], Path("/tmp"))
        self.assertEqual(kwargs["overrides"]["debug"], None)

    def test_main_rejects_non_positive_max_results(self) -> None:
        with mock.patch("sys.stderr", io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(["--max-results", "0"])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
