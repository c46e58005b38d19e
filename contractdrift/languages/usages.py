"""Call-site and field-access scanner for consumer files.

The scanner works on the sanitized code view produced by
:func:`contractdrift.languages.lexing.code_lines`, so names inside strings and
comments never produce usages. Local bindings are tracked with a stack of
brace-delimited scopes; a bare call to a locally bound name is not a contract
usage.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from contractdrift.core.models import UsageKind, UsageSite
from contractdrift.languages.libraries import (
    BUILTIN_MEMBERS,
    BUILTIN_OBJECTS,
    DOM_EVENT_MEMBERS,
    FRAMEWORK_ROOTS,
    KEYWORDS_AND_BUILTINS,
    library_names,
)
from contractdrift.languages.lexing import code_lines, find_closing, slice_span, split_top_level
from contractdrift.languages.typescript import TypeScriptExtractor, check_text

logger = logging.getLogger(__name__)

_IDENT = r"[A-Za-z_$][\w$]*"

_CALL_RE = re.compile(r"(?<![\w$#])([a-z][\w$]*)\s*(?:<[^<>()=;]*>)?\s*\(")
_CHAIN_RE = re.compile(
    r"(?:(?<=\.\.\.)|(?<![\w$.#]))(" + _IDENT + r")((?:\s*!?\??\.\s*" + _IDENT + r")+)"
)
_LINK_RE = re.compile(r"\.\s*(" + _IDENT + ")")
_CHAIN_TAIL_RE = re.compile(r"(" + _IDENT + r")((?:\s*!?\??\.\s*" + _IDENT + r")*)\s*!?\??\.\s*$")
_PRECEDING_WORD_RE = re.compile(r"(" + _IDENT + r")\s*\*?\s*$")

_IMPORT_LINE_RE = re.compile(r"^\s*import\b(?!\s*\()")
_REEXPORT_LINE_RE = re.compile(r"^\s*export\s+(?:type\s+)?(?:\*|\{)")
_DECL_RE = re.compile(r"\b(?:const|let|var)\s+(" + _IDENT + ")")
_DESTRUCTURE_RE = re.compile(r"\b(?:const|let|var)\s*([{\[])")
_FUNCTION_DECL_RE = re.compile(r"\bfunction\b\s*\*?\s*(" + _IDENT + r")?\s*(?:<[^>(]*>)?\s*\(")
_ARROW_PARAMS_RE = re.compile(r"\(([^()]*)\)\s*(?::\s*[^=;]+?)?\s*=>")
_ARROW_SINGLE_RE = re.compile(r"(?<![\w$.])(" + _IDENT + r")\s*=>")
_CATCH_RE = re.compile(r"\bcatch\s*\(\s*(" + _IDENT + ")")
_FOR_RE = re.compile(r"^\s*for\s*(?:await\s*)?\(")
_CLASS_RE = re.compile(r"\bclass\b(?:\s+" + _IDENT + r")?[^{]*\{")
_METHOD_DEF_RE = re.compile(
    r"^\s*(?:(?:public|private|protected|static|async|override|readonly|abstract|get|set)\s+)*"
    r"\*?\s*#?(" + _IDENT + r")\s*(?:<[^>(]*>)?\s*\("
)
_DEFINITION_TAIL_RE = re.compile(r"^\s*(?::[^{;=]*)?\{")
_NON_CALL_PREFIXES = ("function", "new", "class", "interface", "type")
_LOCAL_SHAPE_RE = re.compile(
    r"^\s*(?:declare\s+)?(?:interface\s+" + _IDENT + r"\b[^{]*"
    r"|type\s+" + _IDENT + r"\s*(?:<[^=]*>)?\s*=\s*)\{"
)
_MEMBER_KEY_RE = re.compile(
    r"(?:^|[{;,])\s*(?:readonly\s+)?(" + _IDENT + r")\s*\??\s*:", re.MULTILINE
)


@dataclass
class _Scope:
    names: set[str] = field(default_factory=set)
    is_class: bool = False


class TypeScriptUsageScanner:
    """Finds call sites and field accesses in TypeScript/JavaScript files."""

    def __init__(self, extractor: TypeScriptExtractor | None = None) -> None:
        self.extractor = extractor or TypeScriptExtractor()

    def scan(self, path: str, content: str) -> list[UsageSite]:
        """Return usage sites ordered by (line, column)."""
        check_text(path, content)
        imports = self.extractor.extract_imports(content)
        external = [imp for imp in imports if imp.is_external]
        external_names = {name for imp in external for name in imp.names}
        ignored = library_names([imp.specifier for imp in external])

        lines = code_lines(content)
        root = _Scope(names=_top_level_bindings(lines) | external_names)
        scan = _FileScan(path, lines, root, external_names, ignored, _local_shape_fields(lines))
        scan.run()

        scan.sites.sort(key=lambda s: (s.line, s.column))
        logger.debug("Scanned %s: %d usage sites", path, len(scan.sites))
        return scan.sites


class _FileScan:
    """State for scanning one file."""

    def __init__(
        self,
        path: str,
        lines: list[str],
        root: _Scope,
        external_names: set[str],
        ignored: frozenset[str],
        local_fields: frozenset[str] = frozenset(),
    ) -> None:
        self.path = path
        self.lines = lines
        self.scopes = [root]
        self.external_names = external_names
        self.ignored = ignored
        self.local_fields = local_fields
        self.sites: list[UsageSite] = []
        self._in_import = False

    def run(self) -> None:
        for index, code in enumerate(self.lines):
            if self._skip_import(code):
                continue
            self._visit_line(index, code)

    def _skip_import(self, code: str) -> bool:
        if self._in_import:
            if "}" in code:
                self._in_import = False
            return True
        if _IMPORT_LINE_RE.match(code) or _REEXPORT_LINE_RE.match(code):
            if code.count("{") > code.count("}"):
                self._in_import = True
            return True
        return False

    def _visit_line(self, index: int, code: str) -> None:
        scope = self.scopes[-1]
        pending: set[str] = set()
        definitions: set[int] = set()

        target = pending if _FOR_RE.match(code) else scope.names
        target.update(_declared_names(code))

        for match in _FUNCTION_DECL_RE.finditer(code):
            if match.group(1):
                scope.names.add(match.group(1))
            pending.update(self._params_at(index, match.end() - 1))

        for match in _ARROW_PARAMS_RE.finditer(code):
            pending.update(_param_names(match.group(1)))
        for match in _ARROW_SINGLE_RE.finditer(code):
            pending.add(match.group(1))
        for match in _CATCH_RE.finditer(code):
            pending.add(match.group(1))

        method = _METHOD_DEF_RE.match(code)
        if method and method.group(1) not in KEYWORDS_AND_BUILTINS:
            closing = find_closing(self.lines, index, method.end() - 1)
            if closing is not None:
                cl, cc = closing
                tail = self.lines[cl][cc + 1 :]
                if scope.is_class or _DEFINITION_TAIL_RE.match(tail):
                    definitions.add(method.start(1))
                    pending.update(self._params_at(index, method.end() - 1))

        visible = self._visible() | pending
        self._scan_calls(index, code, visible, definitions)
        self._scan_fields(index, code)
        self._apply_braces(code, pending)

    def _visible(self) -> set[str]:
        names: set[str] = set()
        for scope in self.scopes:
            names |= scope.names
        return names

    def _params_at(self, index: int, open_col: int) -> set[str]:
        closing = find_closing(self.lines, index, open_col)
        if closing is None:
            return set()
        return _param_names(slice_span(self.lines, (index, open_col), closing))

    def _apply_braces(self, code: str, pending: set[str]) -> None:
        class_match = _CLASS_RE.search(code)
        class_brace = class_match.end() - 1 if class_match else -1
        first = True
        for col, ch in enumerate(code):
            if ch == "{":
                names = pending if first else set()
                self.scopes.append(_Scope(names=set(names), is_class=col == class_brace))
                first = False
            elif ch == "}" and len(self.scopes) > 1:
                self.scopes.pop()

    # -- calls -------------------------------------------------------------

    def _scan_calls(self, index: int, code: str, visible: set[str], definitions: set[int]) -> None:
        for match in _CALL_RE.finditer(code):
            name = match.group(1)
            start = match.start(1)
            if start in definitions or name in KEYWORDS_AND_BUILTINS:
                continue

            before = code[:start].rstrip()
            preceding = _PRECEDING_WORD_RE.search(before)
            if preceding and preceding.group(1) in _NON_CALL_PREFIXES:
                continue

            receiver: str | None = None
            if before.endswith("."):
                if before.endswith("..."):
                    continue
                if name in BUILTIN_MEMBERS:
                    continue
                tail = _CHAIN_TAIL_RE.search(before)
                if tail is not None:
                    chain = [tail.group(1)] + _LINK_RE.findall(tail.group(2))
                    root, receiver = chain[0], chain[-1]
                    if self._foreign_root(root) or receiver in self.ignored:
                        continue
                else:
                    receiver = ""
            elif name in visible:
                continue

            open_col = match.end() - 1
            closing = find_closing(self.lines, index, open_col)
            arguments = (
                slice_span(self.lines, (index, open_col), closing) if closing is not None else None
            )
            self.sites.append(
                UsageSite(
                    kind=UsageKind.CALL,
                    name=name,
                    file=self.path,
                    line=index + 1,
                    column=start + 1,
                    arguments=arguments,
                    receiver=receiver or None,
                )
            )

    def _foreign_root(self, root: str) -> bool:
        """True when a member chain starts at a third-party or runtime object."""
        if root in ("this", "super"):
            return False
        if root in BUILTIN_OBJECTS or root in FRAMEWORK_ROOTS:
            return True
        return root in self.external_names or root in self.ignored

    # -- fields ------------------------------------------------------------

    def _scan_fields(self, index: int, code: str) -> None:
        for match in _CHAIN_RE.finditer(code):
            root = match.group(1)
            if root in self.external_names or root in FRAMEWORK_ROOTS:
                continue
            links = [(root, match.start(1))]
            for link in _LINK_RE.finditer(match.group(2)):
                links.append((link.group(1), match.start(2) + link.start(1)))

            for (owner, _), (name, col) in zip(links, links[1:]):
                after = code[col + len(name) :].lstrip()
                if after.startswith("(") or after.startswith("?.("):
                    continue
                if owner in BUILTIN_OBJECTS or name in BUILTIN_MEMBERS:
                    continue
                if name in DOM_EVENT_MEMBERS or name in self.local_fields:
                    continue
                if owner in self.ignored or name in self.ignored:
                    continue
                self.sites.append(
                    UsageSite(
                        kind=UsageKind.FIELD_ACCESS,
                        name=name,
                        file=self.path,
                        line=index + 1,
                        column=col + 1,
                        receiver=owner,
                    )
                )


def _top_level_bindings(lines: list[str]) -> set[str]:
    """Names declared at module level, visible everywhere in the file."""
    names: set[str] = set()
    depth = 0
    for code in lines:
        if depth == 0:
            names.update(_declared_names(code))
            for match in _FUNCTION_DECL_RE.finditer(code):
                if match.group(1):
                    names.add(match.group(1))
        depth = max(0, depth + code.count("{") - code.count("}"))
    return names


def _declared_names(code: str) -> set[str]:
    """Names bound by const/let/var declarations on a line, destructuring included."""
    names = {m.group(1) for m in _DECL_RE.finditer(code)}
    for match in _DESTRUCTURE_RE.finditer(code):
        end = _matching_bracket(code, match.start(1))
        if end is not None:
            names.update(_pattern_names(code[match.start(1) : end + 1]))
    return names


def _param_names(text: str) -> set[str]:
    """Names bound by a parameter list."""
    names: set[str] = set()
    for part in split_top_level(text):
        part = re.sub(r"^\s*(?:@[\w$.]+(?:\([^)]*\))?\s*)*", "", part)
        part = re.sub(r"^(?:(?:public|private|protected|readonly|override)\s+)+", "", part)
        names.update(_pattern_names(part))
    return names


def _pattern_names(text: str) -> set[str]:
    """Names bound by a binding pattern (identifier, object or array destructuring)."""
    text = text.strip()
    if text.startswith("..."):
        text = text[3:].lstrip()
    if text[:1] in ("{", "["):
        end = _matching_bracket(text, 0)
        inner = text[1:end] if end is not None else text[1:]
        names: set[str] = set()
        for item in split_top_level(inner):
            item = item.strip()
            if not item:
                continue
            if text[0] == "{" and not item.startswith("..."):
                colon = _top_level_index(item, ":")
                equals = _top_level_index(item, "=")
                # `key: binding` renames; `key = default` keeps the key
                if colon != -1 and (equals == -1 or colon < equals):
                    item = item[colon + 1 :]
            equals = _top_level_index(item, "=")
            if equals != -1:
                item = item[:equals]
            names.update(_pattern_names(item))
        return names
    match = re.match(_IDENT, text)
    return {match.group(0)} if match else set()


def _top_level_index(text: str, char: str) -> int:
    depth = 0
    for i, ch in enumerate(text):
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == char and depth == 0:
            return i
    return -1


def _matching_bracket(text: str, start: int) -> int | None:
    opener = text[start]
    closer = "}" if opener == "{" else "]"
    depth = 0
    for i in range(start, len(text)):
        if text[i] == opener:
            depth += 1
        elif text[i] == closer:
            depth -= 1
            if depth == 0:
                return i
    return None


def _local_shape_fields(lines: list[str]) -> frozenset[str]:
    """Field names of interfaces and object types the file declares without exporting.

    Accesses to these fields read a local data shape, so they are never
    matched against shared contracts. Nested inline object types count too.
    """
    names: set[str] = set()
    for index, code in enumerate(lines):
        match = _LOCAL_SHAPE_RE.match(code)
        if match is None:
            continue
        body = _braced_body(lines, index, match.end() - 1)
        names.update(m.group(1) for m in _MEMBER_KEY_RE.finditer(body))
    return frozenset(names)


def _braced_body(lines: list[str], line_index: int, open_col: int) -> str:
    """Text from the brace at ``lines[line_index][open_col]`` through its match."""
    depth = 0
    pieces: list[str] = []
    for li in range(line_index, len(lines)):
        line = lines[li]
        start = open_col if li == line_index else 0
        for ci in range(start, len(line)):
            if line[ci] == "{":
                depth += 1
            elif line[ci] == "}":
                depth -= 1
                if depth == 0:
                    pieces.append(line[start : ci + 1])
                    return "\n".join(pieces)
        pieces.append(line[start:])
    return "\n".join(pieces)
