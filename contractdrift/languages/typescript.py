"""TypeScript/JavaScript extractor using regexes and brace-depth counting.

This is a line-oriented substitute for a real parser. Declarations are found
with anchored regexes on a sanitized view of each line (comments and string
bodies blanked), and declaration bodies are delimited by counting braces until
the depth returns to zero.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from contractdrift.core.exceptions import ExtractionError
from contractdrift.core.models import (
    LANGUAGE_EXTENSIONS,
    ExportedFunction,
    ExportedShape,
    Parameter,
    ShapeField,
    ShapeKind,
)
from contractdrift.languages.lexing import code_lines, find_closing, slice_span, split_top_level
from contractdrift.languages.models import ExtractionResult, ParsedImport

logger = logging.getLogger(__name__)

_IDENT = r"[A-Za-z_$][\w$]*"

_IMPORT_FROM_RE = re.compile(
    r"^\s*import\s+(type\s+)?([\w$*\s{},]+?)\s+from\s+['\"]([^'\"]+)['\"]", re.MULTILINE
)
_IMPORT_BARE_RE = re.compile(r"^\s*import\s+['\"]([^'\"]+)['\"]", re.MULTILINE)
_EXPORT_FROM_RE = re.compile(
    r"^\s*export\s+(type\s+)?(\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s+from\s+['\"]([^'\"]+)['\"]",
    re.MULTILINE,
)
_REQUIRE_RE = re.compile(
    r"(?:\b(?:const|let|var)\s+(" + _IDENT + r"|\{[^}]*\})\s*=\s*)?"
    r"\brequire\(\s*['\"]([^'\"]+)['\"]\s*\)"
)
_DYNAMIC_IMPORT_RE = re.compile(r"\bimport\(\s*['\"]([^'\"]+)['\"]\s*\)")

_FUNCTION_RE = re.compile(
    r"^\s*export\s+(?:default\s+)?(?:declare\s+)?(async\s+)?function\s*\*?\s*("
    + _IDENT
    + r")\s*(?:<[^>(]*>)?\s*\("
)
_ARROW_RE = re.compile(
    r"^\s*export\s+const\s+(" + _IDENT + r")\s*(?::[^=]+)?=\s*(async\s+)?(?:<[^>(]*>\s*)?\("
)
_ARROW_SINGLE_RE = re.compile(
    r"^\s*export\s+const\s+(" + _IDENT + r")\s*=\s*(async\s+)?(" + _IDENT + r")\s*=>"
)
_FUNCTION_EXPR_RE = re.compile(
    r"^\s*export\s+const\s+("
    + _IDENT
    + r")\s*(?::[^=]+)?=\s*(async\s+)?function\s*\*?\s*[\w$]*\s*\("
)
_ARROW_TAIL_RE = re.compile(r"^\s*(?::[^=]*?)?=>")

_CLASS_RE = re.compile(
    r"^\s*export\s+(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?class\s+(" + _IDENT + r")"
)
_METHOD_RE = re.compile(
    r"^\s*(?:(?:public|static|override|abstract)\s+)*(async\s+)?\*?\s*("
    + _IDENT
    + r")\s*(?:<[^>(]*>)?\s*\("
)
_PROPERTY_ARROW_RE = re.compile(
    r"^\s*(?:(?:public|static|readonly)\s+)*(" + _IDENT + r")\s*(?::[^=]+)?=\s*(async\s+)?\("
)
_HIDDEN_MEMBER_RE = re.compile(r"^\s*(?:private\b|protected\b|#|(?:get|set)\s+" + _IDENT + ")")
_LEADING_DECORATORS_RE = re.compile(r"^\s*(?:@[\w$.]+(?:\([^)]*\))?\s*)+")
_TOP_LEVEL_EXPORT_RE = re.compile(r"^export\s")

_INTERFACE_RE = re.compile(
    r"^\s*export\s+(?:default\s+)?(?:declare\s+)?interface\s+(" + _IDENT + r")"
)
_TYPE_OBJECT_RE = re.compile(
    r"^\s*export\s+(?:declare\s+)?type\s+(" + _IDENT + r")\s*(?:<[^=]*>)?\s*=\s*\{"
)
_RECORD_RE = re.compile(
    r"^\s*export\s+const\s+(" + _IDENT + r")\s*=\s*(?:[\w$]+\.)?object\(\s*\{"
)
_FIELD_RE = re.compile(
    r"^\s*(?:readonly\s+)?(['\"]?)(" + _IDENT + r")\1(\?)?\s*:\s*(.+?)\s*$", re.DOTALL
)
_PARAM_RE = re.compile(r"^(" + _IDENT + r")(\?)?\s*(?::\s*(.+))?$", re.DOTALL)
_DECORATOR_RE = re.compile(r"^@[\w$.]+(?:\([^)]*\))?\s*")
_MODIFIER_RE = re.compile(r"^(?:(?:public|private|protected|readonly|override)\s+)+")

_NON_METHODS = frozenset(
    {"constructor", "if", "for", "while", "switch", "catch", "return", "function", "super"}
)


class TypeScriptExtractor:
    """Extractor for TypeScript and JavaScript source files."""

    supported_extensions = list(LANGUAGE_EXTENSIONS)

    def supports(self, path: str) -> bool:
        """Check if this extractor supports the given file."""
        return any(path.lower().endswith(ext) for ext in self.supported_extensions)

    def extract_imports(self, content: str) -> list[ParsedImport]:
        """Extract imports, re-exports, requires and dynamic imports."""
        imports: list[ParsedImport] = []

        for match in _IMPORT_FROM_RE.finditer(content):
            imports.append(
                ParsedImport(
                    specifier=match.group(3),
                    line=_line_of(content, match.start(3)),
                    names=_import_bindings(match.group(2)),
                    type_only=bool(match.group(1)),
                )
            )

        for match in _IMPORT_BARE_RE.finditer(content):
            line = _line_of(content, match.start(1))
            imports.append(ParsedImport(specifier=match.group(1), line=line))

        for match in _EXPORT_FROM_RE.finditer(content):
            imports.append(
                ParsedImport(
                    specifier=match.group(3),
                    line=_line_of(content, match.start(3)),
                    type_only=bool(match.group(1)),
                )
            )

        for match in _REQUIRE_RE.finditer(content):
            target = match.group(1)
            names = _import_bindings(target) if target else []
            imports.append(
                ParsedImport(
                    specifier=match.group(2),
                    line=_line_of(content, match.start(2)),
                    names=names,
                )
            )

        for match in _DYNAMIC_IMPORT_RE.finditer(content):
            line = _line_of(content, match.start(1))
            imports.append(ParsedImport(specifier=match.group(1), line=line))

        imports.sort(key=lambda imp: imp.line)
        return imports

    def extract_symbols(self, path: str, content: str) -> ExtractionResult:
        """Extract exported functions, exported-class methods and data shapes."""
        check_text(path, content)
        visitor = _DeclarationScanner(path, content)
        visitor.run()
        return ExtractionResult(
            path=path,
            functions=visitor.functions,
            shapes=visitor.shapes,
            dropped=visitor.dropped,
        )


@dataclass
class _OpenShape:
    """A shape whose body is still being read."""

    name: str
    kind: ShapeKind
    line: int
    depth: int = 0
    opened: bool = False
    paren_depth: int = 0
    angle_depth: int = 0
    fields: list[ShapeField] = field(default_factory=list)
    member: list[str] = field(default_factory=list)
    member_line: int = 0


@dataclass
class _OpenClass:
    """An exported class whose body is still being read."""

    name: str
    line: int
    depth: int = 0
    opened: bool = False
    methods: list[ExportedFunction] = field(default_factory=list)


class _DeclarationScanner:
    """Walks a file line by line, tracking open shapes and classes."""

    def __init__(self, path: str, content: str) -> None:
        self.path = path
        self.raw = content.split("\n")
        self.code = code_lines(content)
        self.functions: list[ExportedFunction] = []
        self.shapes: list[ExportedShape] = []
        self.dropped: list[str] = []

        self._shape: _OpenShape | None = None
        self._class: _OpenClass | None = None

    def run(self) -> None:
        for index, code in enumerate(self.code):
            self._visit_line(index, code)

        if self._shape is not None:
            self._drop(self._shape.name, self._shape.line)
        if self._class is not None:
            self._drop(self._class.name, self._class.line)

    def _visit_line(self, index: int, code: str) -> None:
        shape_start = self._match_shape(code)
        class_match = _CLASS_RE.match(code)

        if shape_start or class_match or _TOP_LEVEL_EXPORT_RE.match(code):
            self._abandon_open()

        if shape_start is not None:
            name, kind, offset = shape_start
            self._shape = _OpenShape(name=name, kind=kind, line=index + 1)
            self._feed_shape(self._shape, index, offset)
            return

        if class_match:
            self._class = _OpenClass(name=class_match.group(1), line=index + 1)
            self._feed_class(self._class, index, code, class_match.end())
            return

        if self._shape is not None:
            self._feed_shape(self._shape, index, 0)
            return

        if self._class is not None:
            self._feed_class(self._class, index, code, 0)
            return

        self._match_function(index, code)

    def _abandon_open(self) -> None:
        if self._shape is not None:
            self._drop(self._shape.name, self._shape.line)
            self._shape = None
        if self._class is not None:
            self._drop(self._class.name, self._class.line)
            self._class = None

    def _drop(self, name: str, line: int) -> None:
        logger.debug("Dropping unbalanced declaration %s at %s:%d", name, self.path, line)
        self.dropped.append(name)

    # -- shapes ------------------------------------------------------------

    def _match_shape(self, code: str) -> tuple[str, ShapeKind, int] | None:
        match = _INTERFACE_RE.match(code)
        if match:
            return match.group(1), ShapeKind.INTERFACE, match.end()
        match = _TYPE_OBJECT_RE.match(code)
        if match:
            return match.group(1), ShapeKind.TYPE, match.end() - 1
        match = _RECORD_RE.match(code)
        if match:
            return match.group(1), ShapeKind.RECORD, match.end() - 1
        return None

    def _feed_shape(self, shape: _OpenShape, index: int, start: int) -> None:
        code = self.code[index]
        raw = self.raw[index]

        if shape.opened and not shape.member:
            shape.member_line = index + 1

        for col in range(start, len(code)):
            ch = code[col]
            if ch == "{":
                shape.depth += 1
                if shape.depth == 1 and not shape.opened:
                    shape.opened = True
                    shape.member_line = index + 1
                    continue
            elif ch == "}":
                shape.depth -= 1
                if shape.depth == 0 and shape.opened:
                    self._flush_member(shape)
                    self._commit_shape(shape)
                    return
            elif shape.depth == 1 and ch == "(":
                shape.paren_depth += 1
            elif shape.depth == 1 and ch == ")":
                shape.paren_depth = max(0, shape.paren_depth - 1)
            elif shape.depth == 1 and ch == "<":
                shape.angle_depth += 1
            elif shape.depth == 1 and ch == ">" and (col == 0 or code[col - 1] != "="):
                shape.angle_depth = max(0, shape.angle_depth - 1)

            if not shape.opened:
                continue

            at_separator = (
                shape.depth == 1
                and ch in ";,"
                and shape.paren_depth == 0
                and shape.angle_depth == 0
            )
            if at_separator:
                self._flush_member(shape)
                shape.member_line = index + 1
                continue
            if shape.depth >= 1:
                if not shape.member:
                    shape.member_line = index + 1
                shape.member.append(raw[col])

        if shape.opened and shape.depth == 1 and shape.paren_depth == 0:
            self._flush_member(shape)
        elif shape.member:
            shape.member.append(" ")

    def _flush_member(self, shape: _OpenShape) -> None:
        text = "".join(shape.member).strip()
        shape.member = []
        shape.angle_depth = 0
        if not text:
            return
        match = _FIELD_RE.match(text)
        if not match:
            return
        type_text = match.group(4).rstrip(";,").strip()
        shape.fields.append(
            ShapeField(
                name=match.group(2),
                optional=bool(match.group(3)),
                type_text=type_text or None,
                line=shape.member_line,
            )
        )

    def _commit_shape(self, shape: _OpenShape) -> None:
        self.shapes.append(
            ExportedShape(
                name=shape.name,
                kind=shape.kind,
                file=self.path,
                line=shape.line,
                fields=tuple(shape.fields),
            )
        )
        self._shape = None

    # -- classes -----------------------------------------------------------

    def _feed_class(self, cls: _OpenClass, index: int, code: str, start: int) -> None:

        if cls.opened and cls.depth == 1:
            method = self._match_method(index, code, cls.name)
            if method is not None:
                cls.methods.append(method)

        for ch in code[start:]:
            if ch == "{":
                cls.depth += 1
                cls.opened = True
            elif ch == "}":
                cls.depth -= 1
                if cls.opened and cls.depth == 0:
                    self.functions.extend(cls.methods)
                    self._class = None
                    return

    def _match_method(self, index: int, code: str, class_name: str) -> ExportedFunction | None:
        code = _LEADING_DECORATORS_RE.sub(lambda m: " " * len(m.group(0)), code)
        if _HIDDEN_MEMBER_RE.match(code):
            return None
        match = _METHOD_RE.match(code) or _PROPERTY_ARROW_RE.match(code)
        if not match:
            return None
        name = match.group(2) if match.re is _METHOD_RE else match.group(1)
        if name in _NON_METHODS:
            return None
        is_async = bool(match.group(1) if match.re is _METHOD_RE else match.group(2))
        params = self._parameters_at(index, match.end() - 1)
        if params is None:
            return None
        return ExportedFunction(
            name=name,
            file=self.path,
            line=index + 1,
            parameters=params,
            is_async=is_async,
            class_name=class_name,
        )

    # -- functions ---------------------------------------------------------

    def _match_function(self, index: int, code: str) -> None:
        match = _FUNCTION_RE.match(code)
        if match:
            self._add_function(
                index, match.group(2), bool(match.group(1)), match.end() - 1, arrow=False
            )
            return

        match = _FUNCTION_EXPR_RE.match(code)
        if match:
            self._add_function(
                index, match.group(1), bool(match.group(2)), match.end() - 1, arrow=False
            )
            return

        match = _ARROW_RE.match(code)
        if match:
            self._add_function(
                index, match.group(1), bool(match.group(2)), match.end() - 1, arrow=True
            )
            return

        match = _ARROW_SINGLE_RE.match(code)
        if match:
            end = self._arrow_body_end(index, match.end())
            if end is None:
                self._drop(match.group(1), index + 1)
                return
            self.functions.append(
                ExportedFunction(
                    name=match.group(1),
                    file=self.path,
                    line=index + 1,
                    parameters=(Parameter(name=match.group(3)),),
                    is_async=bool(match.group(2)),
                )
            )

    def _add_function(
        self, index: int, name: str, is_async: bool, open_col: int, arrow: bool
    ) -> None:
        closing = find_closing(self.code, index, open_col)
        if closing is None:
            self._drop(name, index + 1)
            return

        if arrow:
            cl, cc = closing
            tail = self.code[cl][cc + 1 :]
            tail_match = _ARROW_TAIL_RE.match(tail)
            if not tail_match:
                # `export const x = (a, b)` is a value, not a function
                return
            end = self._arrow_body_end(cl, cc + 1 + tail_match.end())
        else:
            end = self._function_body_end(*closing)

        if end is None:
            self._drop(name, index + 1)
            return

        params_text = slice_span(self.raw, (index, open_col), closing)
        self.functions.append(
            ExportedFunction(
                name=name,
                file=self.path,
                line=index + 1,
                parameters=parse_parameters(params_text),
                is_async=is_async,
            )
        )

    def _parameters_at(self, index: int, open_col: int) -> tuple[Parameter, ...] | None:
        closing = find_closing(self.code, index, open_col)
        if closing is None:
            return None
        return parse_parameters(slice_span(self.raw, (index, open_col), closing))

    def _function_body_end(self, line: int, col: int) -> int | None:
        """Line index where a function body closes; the signature line if bodiless."""
        for li in range(line, len(self.code)):
            text = self.code[li][col + 1 :] if li == line else self.code[li]
            for offset, ch in enumerate(text):
                if ch == ";":
                    return li
                if ch == "{":
                    start_col = (col + 1 + offset) if li == line else offset
                    return self._block_end(li, start_col)
        return line

    def _arrow_body_end(self, line: int, col: int) -> int | None:
        """Line index where an arrow body ends; expression bodies end immediately."""
        rest = self.code[line][col:]
        if rest.strip():
            if rest.lstrip().startswith("{"):
                return self._block_end(line, col + rest.index("{"))
            return line
        for li in range(line + 1, len(self.code)):
            stripped = self.code[li].strip()
            if not stripped:
                continue
            if stripped.startswith("{"):
                return self._block_end(li, self.code[li].index("{"))
            return li
        return line

    def _block_end(self, line: int, col: int) -> int | None:
        """Line index where the brace at (line, col) is balanced, None if never."""
        depth = 0
        for li in range(line, len(self.code)):
            text = self.code[li]
            for ci in range(col if li == line else 0, len(text)):
                ch = text[ci]
                if ch == "{":
                    depth += 1
                elif ch == "}":
                    depth -= 1
                    if depth == 0:
                        return li
        return None


def parse_parameters(text: str) -> tuple[Parameter, ...]:
    """Parse a parameter list (the text between the parentheses)."""
    params: list[Parameter] = []
    for part in split_top_level(text):
        part = part.strip()
        if not part:
            continue
        part = _DECORATOR_RE.sub("", part)
        part = _MODIFIER_RE.sub("", part)

        if part.startswith("this") and part[4:].lstrip().startswith(":"):
            continue

        if part.startswith("..."):
            name = re.match(_IDENT, part[3:])
            params.append(Parameter(name=name.group(0) if name else "args", rest=True))
            continue

        if part.startswith("{") or part.startswith("["):
            params.append(_parse_destructured(part))
            continue

        head, default = _split_default(part)
        match = _PARAM_RE.match(head.strip())
        if not match:
            continue
        type_text = match.group(3).strip() if match.group(3) else None
        params.append(
            Parameter(
                name=match.group(1),
                optional=bool(match.group(2)),
                type_text=type_text,
                default=default,
            )
        )
    return tuple(params)


def _parse_destructured(part: str) -> Parameter:
    closer = "}" if part.startswith("{") else "]"
    depth = 0
    end = len(part)
    for i, ch in enumerate(part):
        if ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                end = i
                break

    inner = part[1:end]
    remainder = part[end + 1 :].strip()
    keys: list[str] = []
    if closer == "}":
        for item in split_top_level(inner):
            key = re.match(r"\s*(?:\.\.\.)?(" + _IDENT + ")", item)
            if key:
                keys.append(key.group(1))

    optional = remainder.startswith("?")
    head, default = _split_default(remainder.lstrip("?"))
    type_match = re.match(r"^\s*:\s*(.+)$", head, re.DOTALL)
    name = part[0] + ", ".join(keys) + closer if keys else part[: end + 1]
    return Parameter(
        name=name,
        optional=optional,
        type_text=type_match.group(1).strip() if type_match else None,
        default=default,
        destructured_keys=tuple(keys),
    )


def _split_default(text: str) -> tuple[str, str | None]:
    """Split ``name: Type = value`` at the top-level assignment."""
    depth = 0
    for i, ch in enumerate(text):
        if ch in "([{<":
            depth += 1
        elif ch in ")]}" and depth > 0:
            depth -= 1
        elif ch == ">" and depth > 0 and text[i - 1] != "=":
            depth -= 1
        elif ch == "=" and depth == 0:
            nxt = text[i + 1] if i + 1 < len(text) else ""
            prev = text[i - 1] if i > 0 else ""
            if nxt not in "=>" and prev not in "=!<>":
                return text[:i], text[i + 1 :].strip()
    return text, None


def _import_bindings(clause: str) -> list[str]:
    """Local names bound by an import clause or require target."""
    names: list[str] = []
    clause = clause.strip()

    braced = re.search(r"\{([^}]*)\}", clause)
    if braced:
        for item in braced.group(1).split(","):
            item = item.strip()
            if not item:
                continue
            item = re.sub(r"^type\s+", "", item)
            parts = re.split(r"\s+as\s+|\s*:\s*", item)
            names.append(parts[-1].strip())
        clause = clause[: braced.start()] + clause[braced.end() :]

    namespace = re.search(r"\*\s+as\s+(" + _IDENT + ")", clause)
    if namespace:
        names.append(namespace.group(1))
        clause = clause[: namespace.start()] + clause[namespace.end() :]

    default = re.match(r"\s*(" + _IDENT + ")", clause)
    if default:
        names.append(default.group(1))

    return [n for n in names if n]


def check_text(path: str, content: str) -> None:
    """Reject content that is not source text."""
    if "\x00" in content:
        raise ExtractionError(f"Binary content in {path}")


def _line_of(content: str, pos: int) -> int:
    return content.count("\n", 0, pos) + 1
