"""Tests for repo_converter.conversion_agent -- the convert-write-pace loop."""

import json
from pathlib import PurePath

import pytest

from conftest import FakeRouter, rate_limited, write_tree

from repo_converter.conversion_agent import ConversionAgent, ConversionStep
from repo_converter.conversion_log import ConversionLog
from repo_converter.llm.base import LLMErrorKind, LLMProviderError
from repo_converter.prompts import InstructionContext
from repo_converter.retry import RetryPolicy
from repo_converter.units import SimpleUnit


@pytest.fixture
def workspace(tmp_path):
    return write_tree(tmp_path / "ws", {"a.py": "print(1)", "b.py": "print(2)"})


def _steps(workspace, names=("a.py", "b.py")):
    return [
        ConversionStep(
            unit=SimpleUnit.from_path(workspace / name),
            context=InstructionContext.for_languages("Python", "JavaScript"),
            destination=PurePath(name).with_suffix(".js"),
        )
        for name in names
    ]


def _agent(router, workspace, tmp_path, sleeps, **kwargs):
    return ConversionAgent(
        llm_router=router,
        workspace_root=workspace,
        output_root=tmp_path / "out",
        sleep=sleeps.append,
        **kwargs,
    )


class TestConvert:
    def test_convert_renders_context_around_payload(self, workspace, tmp_path, sleeps):
        router = FakeRouter(["const x = 1;"])
        agent = _agent(router, workspace, tmp_path, sleeps)
        text = agent.convert("x = 1", InstructionContext.angular_file())
        assert text == "const x = 1;"
        assert router.prompts == [
            "Convert this Angular/TypeScript code to React/TypeScript. "
            "Provide only the converted code.\n\nCode:\nx = 1"
        ]
        assert sleeps == []

    def test_prompt_carries_languages_and_payload(self, workspace, tmp_path, sleeps):
        router = FakeRouter()
        _agent(router, workspace, tmp_path, sleeps).execute(_steps(workspace, ["a.py"]))
        [prompt] = router.prompts
        assert prompt.startswith("Convert the following code from Python to JavaScript.")
        assert prompt.endswith("print(1)")

    def test_response_is_written_verbatim(self, workspace, tmp_path, sleeps):
        router = FakeRouter(["```js\nconsole.log(1)\n```"])
        _agent(router, workspace, tmp_path, sleeps).execute(_steps(workspace, ["a.py"]))
        assert (tmp_path / "out" / "a.js").read_text(encoding="utf-8") == "```js\nconsole.log(1)\n```"


class TestExecute:
    def test_pacing_after_each_unit(self, workspace, tmp_path, sleeps):
        summary = _agent(FakeRouter(), workspace, tmp_path, sleeps).execute(_steps(workspace))
        assert summary.completed == 2
        assert summary.written == ["a.js", "b.js"]
        assert sleeps == [2.0, 2.0]

    def test_rate_limit_waits_then_writes_once(self, workspace, tmp_path, sleeps):
        router = FakeRouter([rate_limited(), "console.log(1)"])
        summary = _agent(router, workspace, tmp_path, sleeps).execute(_steps(workspace, ["a.py"]))
        assert sleeps == [60.0, 2.0]
        assert summary.rate_limit_waits == 1
        assert len(router.prompts) == 2
        assert router.prompts[0] == router.prompts[1]
        assert (tmp_path / "out" / "a.js").read_text(encoding="utf-8") == "console.log(1)"

    def test_fatal_error_keeps_earlier_outputs(self, workspace, tmp_path, sleeps):
        error = LLMProviderError("invalid key", kind=LLMErrorKind.UNAUTHORIZED, status_code=401)
        router = FakeRouter(["first", error])
        with pytest.raises(LLMProviderError):
            _agent(router, workspace, tmp_path, sleeps).execute(_steps(workspace))
        assert (tmp_path / "out" / "a.js").exists()
        assert not (tmp_path / "out" / "b.js").exists()
        assert sleeps == [2.0]

    def test_retry_cap_surfaces_rate_limit(self, workspace, tmp_path, sleeps):
        router = FakeRouter([rate_limited()] * 5)
        agent = _agent(router, workspace, tmp_path, sleeps, retry_policy=RetryPolicy(1, max_retries=2))
        with pytest.raises(LLMProviderError) as info:
            agent.execute(_steps(workspace, ["a.py"]))
        assert info.value.is_rate_limited
        assert sleeps == [1, 1]

    def test_dry_run_writes_nothing(self, workspace, tmp_path, sleeps):
        summary = _agent(FakeRouter(), workspace, tmp_path, sleeps, dry_run=True).execute(_steps(workspace))
        assert summary.completed == 2
        assert not (tmp_path / "out").exists()

    def test_actions_are_logged(self, workspace, tmp_path, sleeps):
        log = ConversionLog("run-1", "convert", "https://example.com/r.git", tmp_path / "log.json")
        router = FakeRouter([rate_limited(), "x"])
        _agent(router, workspace, tmp_path, sleeps, log=log).execute(_steps(workspace, ["a.py"]))
        assert [e["action"] for e in log.entries] == ["converting", "rate_limited", "wrote_file"]
        assert log.entries[1]["source_file"] == "a.py"
        on_disk = json.loads((tmp_path / "log.json").read_text(encoding="utf-8"))
        assert len(on_disk["entries"]) == 3
