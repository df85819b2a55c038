"""Format-preserving option edits through the ruamel.yaml round-trip tree.

The editor parses the workflow, walks ``on.workflow_dispatch.inputs.<name>``
and swaps the ``options`` node for a freshly built sequence.  Surviving items
keep their original scalar nodes, so quoting is preserved, and the comment
or blank lines that trail the old block move to the end of the new one.

Serialization is only trusted after a second look: the rendered text is
parsed again, the options must match the requested list, and every line
outside the options block must be byte-identical to the input.  Anything
else raises :class:`UnsafeSerializationError` so the caller can retry with
the line-oriented scanner.
"""

from __future__ import annotations

import io
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedSeq
from ruamel.yaml.error import YAMLError
from ruamel.yaml.scalarstring import DoubleQuotedScalarString, SingleQuotedScalarString

from ..notices import NoticeLevel
from .base import EditStrategy, OptionEditor

__all__ = [
    "DocumentParseError",
    "StructuralEditError",
    "StructuralEditor",
    "UnsafeSerializationError",
    "is_eligible",
    "load_document",
    "locate_input",
    "option_texts",
]

_QUOTED_TYPES = (SingleQuotedScalarString, DoubleQuotedScalarString)
_BLOCK_SCALAR_END = re.compile(r"\s#")
_FLOW_SCALAR_END = re.compile(r"\s#|\s*[,\]}]")


class StructuralEditError(RuntimeError):
    """Raised when the structural editor cannot safely produce a document."""


class DocumentParseError(StructuralEditError):
    """Raised when the document is not valid YAML."""


class UnsafeSerializationError(StructuralEditError):
    """Raised when re-serialising the tree would corrupt the document."""


@dataclass(frozen=True, slots=True)
class _Indent:
    mapping: int = 2
    sequence: int = 4
    offset: int = 2


def _make_yaml() -> YAML:
    yaml = YAML(typ="rt")
    yaml.preserve_quotes = True
    yaml.width = 4096
    return yaml


def load_document(text: str) -> Any:
    """Parse ``text`` into a round-trip tree, raising :class:`DocumentParseError`."""

    try:
        return _make_yaml().load(text)
    except YAMLError as error:
        raise DocumentParseError(f"Workflow is not valid YAML: {error}") from error


def _dispatch(document: Any) -> Mapping[str, Any] | None:
    if not isinstance(document, Mapping):
        return None
    triggers = document.get("on")
    if triggers is None:
        # YAML 1.1 documents resolve the bare ``on`` key to a boolean.
        triggers = document.get(True)
    dispatch = triggers.get("workflow_dispatch") if isinstance(triggers, Mapping) else None
    return dispatch if isinstance(dispatch, Mapping) else None


def _dispatch_inputs(document: Any) -> Mapping[str, Any] | None:
    dispatch = _dispatch(document)
    inputs = dispatch.get("inputs") if dispatch is not None else None
    return inputs if isinstance(inputs, Mapping) else None


def locate_input(document: Any, input_name: str) -> Mapping[str, Any] | None:
    """Return the ``workflow_dispatch`` input named ``input_name`` if present."""

    inputs = _dispatch_inputs(document)
    if inputs is None:
        return None
    definition = inputs.get(input_name)
    return definition if isinstance(definition, Mapping) else None


def is_eligible(definition: Mapping[str, Any]) -> bool:
    """Return ``True`` for choice inputs that carry an options sequence."""

    return definition.get("type") == "choice" and isinstance(definition.get("options"), list)


def _is_flow(node: Any) -> bool:
    return bool(node.fa.flow_style())


def _source_text(lines: Sequence[str], position: Tuple[int, int], flow: bool) -> str:
    """Return the plain scalar starting at ``position`` as written in the source."""

    line, column = position
    raw = lines[line][column:].rstrip("\r\n")
    match = (_FLOW_SCALAR_END if flow else _BLOCK_SCALAR_END).search(raw)
    if match:
        raw = raw[: match.start()]
    return raw.strip()


def option_texts(options: Any, lines: Sequence[str]) -> List[str]:
    """Return each option exactly as written.

    Quoted and plain strings are already text.  Numbers, booleans, nulls and
    dates are read back from ``lines`` so ``3.10`` stays ``3.10`` instead of
    going through the resolved float.
    """

    flow = _is_flow(options)
    texts: List[str] = []
    for index, item in enumerate(options):
        if isinstance(item, str):
            texts.append(str(item))
        else:
            texts.append(_source_text(lines, options.lc.item(index), flow))
    return texts


def _detect_indent(
    lines: Sequence[str],
    dispatch: Any,
    inputs: Any,
    input_name: str,
    definition: Any,
) -> _Indent:
    """Infer the emitter indentation from the target input block."""

    mapping = _Indent.mapping
    parent_col = child_col = inputs.lc.key(input_name)[1]
    if not _is_flow(definition):
        first_key = next(iter(definition), None)
        if first_key is not None:
            child_col = definition.lc.key(first_key)[1]
    elif not _is_flow(inputs):
        # Keys of a flow mapping sit on the opening line; measure one level up.
        parent_col = dispatch.lc.key("inputs")[1]
    if child_col > parent_col:
        mapping = child_col - parent_col

    sequence, offset = mapping + 2, mapping
    options = definition["options"]
    if len(options) and not _is_flow(options):
        key_col = definition.lc.key("options")[1]
        item_line, item_col = options.lc.item(0)
        dash_col = lines[item_line].rfind("-", 0, item_col)
        if dash_col >= key_col:
            offset = dash_col - key_col
            sequence = item_col - key_col
    return _Indent(mapping=mapping, sequence=sequence, offset=offset)


def _options_span(definition: Any) -> Tuple[int, int]:
    """Return the ``[start, stop)`` line range covered by the options block."""

    start = definition.lc.key("options")[0]
    stop = start + 1
    options = definition["options"]
    if len(options):
        stop = max(stop, options.lc.item(len(options) - 1)[0] + 1)
    return start, stop


def _rebuild_sequence(old: CommentedSeq, values: Sequence[str], lines: Sequence[str]) -> CommentedSeq:
    old_texts = option_texts(old, lines)
    used: set[int] = set()
    items: List[Any] = []
    origins: List[int | None] = []
    for position, value in enumerate(values):
        source = next(
            (index for index, text in enumerate(old_texts) if index not in used and text == value),
            None,
        )
        if source is not None:
            used.add(source)
            items.append(old[source])
            origins.append(source)
            continue
        template = old[position] if position < len(old) and position not in used else (items[-1] if items else None)
        items.append(type(template)(value) if isinstance(template, _QUOTED_TYPES) else value)
        origins.append(None)

    sequence = CommentedSeq(items)
    if _is_flow(old):
        sequence.fa.set_flow_style()
    else:
        sequence.fa.set_block_style()

    last = len(old) - 1
    for index, source in enumerate(origins):
        if source is not None and source != last and source in old.ca.items:
            sequence.ca.items[index] = old.ca.items[source]
    # Comments and blank lines after the block hang off its last item.
    if items and last in old.ca.items:
        sequence.ca.items[len(items) - 1] = old.ca.items[last]
    if old.ca.comment:
        sequence.ca.comment = old.ca.comment
    return sequence


class StructuralEditor(OptionEditor):
    """Edit option lists through a parsed, comment-preserving YAML tree."""

    strategy = EditStrategy.STRUCTURAL

    def read_options(self, text: str, input_name: str) -> List[str] | None:
        document = load_document(text)
        inputs = _dispatch_inputs(document)
        if inputs is None:
            self.notices.notify(NoticeLevel.WARNING, "No workflow_dispatch inputs found in workflow")
            return None
        definition = inputs.get(input_name)
        if not isinstance(definition, Mapping):
            self.notices.notify(NoticeLevel.WARNING, f'Input "{input_name}" not found in workflow')
            return None
        if not is_eligible(definition):
            self.notices.notify(
                NoticeLevel.WARNING,
                f'Input "{input_name}" is not a choice type or has no options',
            )
            return None
        return option_texts(definition["options"], text.splitlines(keepends=True))

    def splice(self, text: str, input_name: str, options: Sequence[str]) -> str:
        yaml = _make_yaml()
        try:
            document = yaml.load(text)
        except YAMLError as error:
            raise DocumentParseError(f"Workflow is not valid YAML: {error}") from error

        dispatch = _dispatch(document)
        inputs = _dispatch_inputs(document)
        definition = locate_input(document, input_name)
        if dispatch is None or inputs is None or definition is None or not is_eligible(definition):
            return text

        lines = text.splitlines(keepends=True)
        indent = _detect_indent(lines, dispatch, inputs, input_name, definition)
        span = _options_span(definition)
        definition["options"] = _rebuild_sequence(definition["options"], options, lines)

        yaml.indent(mapping=indent.mapping, sequence=indent.sequence, offset=indent.offset)
        stream = io.StringIO()
        try:
            yaml.dump(document, stream)
        except YAMLError as error:
            raise UnsafeSerializationError(f"Unable to serialise workflow: {error}") from error
        rendered = stream.getvalue()

        try:
            self._verify(lines, rendered, input_name, options, span)
        except UnsafeSerializationError as error:
            if _is_flow(definition):
                raise UnsafeSerializationError(
                    f'{error} (input "{input_name}" is written as a flow mapping, '
                    "which line-based editing cannot change)"
                ) from error
            raise
        return rendered

    @staticmethod
    def _verify(
        original_lines: Sequence[str],
        rendered: str,
        input_name: str,
        options: Sequence[str],
        span: Tuple[int, int],
    ) -> None:
        try:
            reparsed = _make_yaml().load(rendered)
        except YAMLError as error:
            raise UnsafeSerializationError(f"Rendered workflow no longer parses: {error}") from error

        definition = locate_input(reparsed, input_name)
        if definition is None or not is_eligible(definition):
            raise UnsafeSerializationError(f'Input "{input_name}" is missing from the rendered workflow')

        rendered_lines = rendered.splitlines(keepends=True)
        if option_texts(definition["options"], rendered_lines) != list(options):
            raise UnsafeSerializationError(f'Rendered options for "{input_name}" do not match the requested edit')

        start, stop = span
        new_start, new_stop = _options_span(definition)
        if original_lines[:start] != rendered_lines[:new_start] or original_lines[stop:] != rendered_lines[new_stop:]:
            raise UnsafeSerializationError("Serializer rewrote lines outside the options block")
