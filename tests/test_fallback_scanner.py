from __future__ import annotations

import re
import textwrap

from dispatch_choices.engine.fallback import FallbackScanner, extract, render_item, replace
from dispatch_choices.engine.policy import MutationAction, MutationRequest
from dispatch_choices.notices import NoticeLevel, NoticeLog


def _lines(text: str) -> list[str]:
    return text.splitlines(keepends=True)


def _replace(text: str, name: str, options: list[str]) -> str:
    return "".join(replace(_lines(text), name, options))


MULTI_INPUT = textwrap.dedent(
    """\
    name: Deploy
    on:
      workflow_dispatch:
        inputs:
          environment:
            type: choice
            options:
              - dev
              - prod
          region:
            type: choice
            options:
              - us-east-1
              - eu-west-1
    """
)


def test_extract_reads_options(deploy_workflow: str) -> None:
    assert extract(_lines(deploy_workflow), "environment") == ["development", "staging", "production"]


def test_extract_unknown_input_is_empty(deploy_workflow: str) -> None:
    assert extract(_lines(deploy_workflow), "nonexistent") == []


def test_extract_unquotes_values() -> None:
    workflow = textwrap.dedent(
        """\
        on:
          workflow_dispatch:
            inputs:
              env:
                type: choice
                options:
                  - "quoted-value"
                  - 'single-quoted'
                  - unquoted
                  - 'it''s'
                  - plain # trailing comment
        """
    )

    assert extract(_lines(workflow), "env") == ["quoted-value", "single-quoted", "unquoted", "it's", "plain"]


def test_extract_picks_the_named_input() -> None:
    assert extract(_lines(MULTI_INPUT), "environment") == ["dev", "prod"]
    assert extract(_lines(MULTI_INPUT), "region") == ["us-east-1", "eu-west-1"]


def test_extract_input_without_options() -> None:
    workflow = textwrap.dedent(
        """\
        on:
          workflow_dispatch:
            inputs:
              version:
                type: string
                description: Version to deploy
              environment:
                type: choice
                options:
                  - dev
        """
    )

    assert extract(_lines(workflow), "version") == []


def test_extract_ignores_blank_lines_inside_block() -> None:
    workflow = textwrap.dedent(
        """\
        on:
          workflow_dispatch:
            inputs:
              environment:
                type: choice
                options:
                  - dev

                  - prod
        jobs: {}
        """
    )

    assert extract(_lines(workflow), "environment") == ["dev", "prod"]


def test_replace_swaps_item_lines(deploy_workflow: str) -> None:
    result = _replace(deploy_workflow, "environment", ["dev", "stage", "prod"])

    assert "          - dev\n          - stage\n          - prod\n\njobs:" in result
    assert "- development" not in result
    assert "- staging" not in result
    assert "- production" not in result


def test_replace_preserves_other_lines(deploy_workflow: str) -> None:
    result = _replace(deploy_workflow, "environment", ["new-option"])

    before = deploy_workflow.split("          - development")[0]
    after = deploy_workflow.split("          - production\n")[1]
    assert result == before + "          - new-option\n" + after
    assert "description: 'Target environment'" in result


def test_replace_grows_and_shrinks(deploy_workflow: str) -> None:
    grown = _replace(deploy_workflow, "environment", ["opt1", "opt2", "opt3", "opt4", "opt5"])
    assert "- opt1" in grown and "- opt5" in grown

    shrunk = _replace(deploy_workflow, "environment", ["only-one"])
    assert len(re.findall(r"^\s+- ", shrunk, flags=re.MULTILINE)) == 2  # one option plus the checkout step


def test_replace_unknown_input_is_identity(deploy_workflow: str) -> None:
    assert _replace(deploy_workflow, "nonexistent", ["x"]) == deploy_workflow


def test_replace_only_touches_named_input() -> None:
    result = _replace(MULTI_INPUT, "environment", ["qa"])

    assert extract(_lines(result), "environment") == ["qa"]
    assert extract(_lines(result), "region") == ["us-east-1", "eu-west-1"]
    assert result.endswith("      region:\n        type: choice\n        options:\n          - us-east-1\n          - eu-west-1\n")


def test_replace_keeps_crlf_line_endings() -> None:
    workflow = MULTI_INPUT.replace("\n", "\r\n")

    result = _replace(workflow, "region", ["ap-south-1"])

    assert "          - ap-south-1\r\n" in result
    assert "\n" not in result.replace("\r\n", "")


def test_render_item_quotes_only_when_needed() -> None:
    assert render_item("staging") == "staging"
    assert render_item("us-east-1") == "us-east-1"
    assert render_item("yes: no") == "'yes: no'"
    assert render_item("#hash") == "'#hash'"
    assert render_item("it's") == "it's"
    assert render_item("'quoted'") == "'''quoted'''"
    assert render_item("") == "''"


def _request(action: str, value: str, new_value: str | None = None) -> MutationRequest:
    return MutationRequest(MutationAction(action), "environment", value, new_value)


def test_scanner_adds_choice(deploy_workflow: str) -> None:
    edit = FallbackScanner().apply(deploy_workflow, _request("add", "testing"))

    assert edit.changed is True
    assert "          - production\n          - testing\n\njobs:" in edit.text


def test_scanner_leaves_text_alone_when_nothing_changes(deploy_workflow: str) -> None:
    scanner = FallbackScanner()

    for request in (
        _request("add", "staging"),
        _request("delete", "nonexistent"),
        _request("update", "nonexistent", "new-value"),
        _request("update", "staging"),
    ):
        edit = scanner.apply(deploy_workflow, request)
        assert edit.changed is False
        assert edit.text == deploy_workflow


def test_scanner_updates_choice(deploy_workflow: str) -> None:
    edit = FallbackScanner().apply(deploy_workflow, _request("update", "staging", "stage"))

    assert "- staging" not in edit.text
    assert "          - stage\n" in edit.text


def test_scanner_warns_when_options_are_missing(deploy_workflow: str) -> None:
    log = NoticeLog()
    edit = FallbackScanner(log).apply(deploy_workflow, MutationRequest(MutationAction.ADD, "nonexistent", "value"))

    assert edit.text == deploy_workflow
    assert log.messages(NoticeLevel.WARNING) == [
        'Could not locate options for input "nonexistent"; leaving workflow unchanged'
    ]


def test_scanner_keeps_missing_trailing_newline() -> None:
    workflow = MULTI_INPUT.rstrip("\n")

    text = FallbackScanner().splice(workflow, "region", ["us-east-1", "eu-west-1", "ap-south-1"])

    assert text.endswith("          - ap-south-1")


def test_scanner_keeps_expressions(deploy_workflow: str) -> None:
    workflow = deploy_workflow + "        env:\n          TARGET: ${{ inputs.environment }}\n"

    edit = FallbackScanner().apply(workflow, _request("add", "qa"))

    assert "- qa" in edit.text
    assert "${{ inputs.environment }}" in edit.text


def test_extract_decodes_double_quoted_escapes() -> None:
    workflow = textwrap.dedent(
        r"""
        on:
          workflow_dispatch:
            inputs:
              message:
                type: choice
                options:
                  - "line\nbreak"
                  - "say \"hi\""
                  - "tab\there"
                  - "café"
                  - "back\\slash"
        """
    ).lstrip("\n")

    assert extract(_lines(workflow), "message") == ["line\nbreak", 'say "hi"', "tab\there", "café", "back\\slash"]


def test_render_item_escapes_control_characters() -> None:
    assert render_item("line\nbreak") == '"line\\nbreak"'
    assert render_item("tab\there") == '"tab\\there"'
    assert render_item('say "hi"\r') == '"say \\"hi\\"\\r"'
    assert render_item("bell\x07") == '"bell\\a"'
    assert render_item("del\x7f") == '"del\\x7f"'


def test_escaped_values_survive_replace(deploy_workflow: str) -> None:
    text = _replace(deploy_workflow, "environment", ["two\nlines", "plain"])

    assert '          - "two\\nlines"\n' in text
    assert extract(_lines(text), "environment") == ["two\nlines", "plain"]


def test_scanner_names_flow_mapping_inputs() -> None:
    workflow = textwrap.dedent(
        """\
        on:
          workflow_dispatch:
            inputs:
              python: {type: choice, options: [a, b]}
        """
    )
    log = NoticeLog()

    edit = FallbackScanner(log).apply(workflow, MutationRequest(MutationAction.ADD, "python", "c"))

    assert edit.changed is False
    assert edit.text == workflow
    [warning] = log.messages(NoticeLevel.WARNING)
    assert warning.startswith('Input "python" is written as a flow mapping')
