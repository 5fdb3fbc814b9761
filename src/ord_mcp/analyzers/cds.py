"""CDSソースの軽量パーサー。

完全な構文解析は行わず、文字列リテラルと括弧の対応だけを追跡して
サービス・エンティティ・イベント・アクションとアノテーションを抽出する。
"""

import re
from collections.abc import Iterator
from typing import NamedTuple

from ord_mcp.models.cds import (
    CdsElement,
    CdsEntity,
    CdsEvent,
    CdsModel,
    CdsOperation,
    CdsService,
    OrdAnnotation,
)

ORD_ANNOTATION_PREFIX = "ORD.Extensions."

_QUOTES = "'\"`"

# 文字列リテラル内の // や /* は保持する
_COMMENT_RE = re.compile(
    r"""('(?:[^'\\\n]|\\.)*'|"(?:[^"\\\n]|\\.)*"|`(?:[^`\\]|\\.)*`)|//[^\n]*|/\*.*?\*/""",
    re.DOTALL,
)
_NAMESPACE_RE = re.compile(r"^\s*namespace\s+([\w.]+)\s*;", re.MULTILINE)
_USING_RE = re.compile(
    r"\busing\s+(?:(?:\{[^}]*\}|[\w.*]+(?:\s+as\s+\w+)?)\s+)?from\s+(['\"])(?P<source>[^'\"]+)\1"
)
_KEYWORD_RE = re.compile(
    r"^(?:define\s+)?(?P<kind>service|entity|event|action|function|context|type|aspect|annotate|extend)\b\s*(?P<rest>.*)$",
    re.DOTALL,
)
_NAME_RE = re.compile(r"[\w.]+")
_ANNOTATION_NAME_RE = re.compile(r"[\w.#]+")
_BARE_VALUE_RE = re.compile(r"[^\s;,(){}\[\]]+")
_ENTITY_RE = re.compile(
    r"^(?P<name>[\w.]+)\s*(?:\([^)]*\)\s*)?"
    r"(?::\s*(?P<extends>.+)"
    r"|as\s+projection\s+on\s+(?P<projection>[\w.]+).*"
    r"|as\s+select\s+from\s+(?P<select>[\w.]+).*)?$",
    re.DOTALL,
)
_ELEMENT_RE = re.compile(r"^(?:(?:key|virtual|masked)\s+)*(?P<name>\w+)\s*:\s*(?P<type>.*)$", re.DOTALL)
_RETURNS_RE = re.compile(r"^(?:returns|:)\s*(?P<type>.*)$", re.DOTALL)


class _Statement(NamedTuple):
    annotations: tuple[str, ...]
    head: str
    body: str | None


class _Annotation(NamedTuple):
    name: str
    value: str


def strip_comments(content: str) -> str:
    """行コメントとブロックコメントを除去する。"""
    return _COMMENT_RE.sub(lambda m: m.group(1) or " ", content)


def _skip_ws(text: str, i: int) -> int:
    while i < len(text) and text[i].isspace():
        i += 1
    return i


def _string_end(text: str, i: int) -> int:
    quote = text[i]
    j = i + 1
    while j < len(text):
        ch = text[j]
        if ch == "\\":
            j += 2
            continue
        if ch == quote:
            return j + 1
        if ch == "\n" and quote != "`":
            return j
        j += 1
    return len(text)


def _block_end(text: str, i: int) -> int:
    """text[i] の開き括弧に対応する閉じ括弧の直後の位置を返す。"""
    depth = 0
    while i < len(text):
        ch = text[i]
        if ch in _QUOTES:
            i = _string_end(text, i)
            continue
        if ch in "({[":
            depth += 1
        elif ch in ")}]":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return len(text)


def _value_end(text: str, i: int) -> int:
    if i >= len(text):
        return i
    ch = text[i]
    if ch in "({[":
        return _block_end(text, i)
    if ch in _QUOTES:
        return _string_end(text, i)
    m = _BARE_VALUE_RE.match(text, i)
    return m.end() if m else i


def _annotation_end(text: str, i: int) -> int:
    """text[i] の '@' から始まるアノテーションの終端位置を返す。"""
    j = i + 1
    if j < len(text) and text[j] == "(":
        return _block_end(text, j)
    m = _ANNOTATION_NAME_RE.match(text, j)
    if not m:
        return j
    j = m.end()
    if j < len(text) and text[j] == "(":
        # @default('OPEN') のような引数付きアノテーション
        return _block_end(text, j)
    k = _skip_ws(text, j)
    if k >= len(text) or text[k] != ":":
        return j
    return _value_end(text, _skip_ws(text, k + 1))


def _split_top_level(text: str, sep: str = ",") -> list[str]:
    parts: list[str] = []
    depth = 0
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in _QUOTES:
            i = _string_end(text, i)
            continue
        if ch in "({[":
            depth += 1
        elif ch in ")}]":
            depth -= 1
        elif ch == sep and depth == 0:
            parts.append(text[start:i])
            start = i + 1
        i += 1
    parts.append(text[start:])
    return [p.strip() for p in parts if p.strip()]


def _statement_extent(text: str, start: int) -> tuple[int, str | None, int]:
    """文の (本体開始位置, 本体, 終端位置) を返す。

    深さ0の ';' で終わる文は本体を持たない。深さ0の '{' が現れた場合は
    対応する '}' までを本体とし、直後の ';' も文に含める。
    """
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch in _QUOTES:
            i = _string_end(text, i)
            continue
        if ch == "{" and depth == 0:
            end = _block_end(text, i)
            body = text[i + 1 : end - 1]
            j = _skip_ws(text, end)
            if j < len(text) and text[j] == ";":
                end = j + 1
            return i, body, end
        if ch in "({[":
            depth += 1
        elif ch in ")}]":
            if depth == 0:
                return i, None, i + 1
            depth -= 1
        elif ch == ";" and depth == 0:
            return i, None, i + 1
        i += 1
    return len(text), None, len(text)


def _iter_statements(text: str) -> Iterator[_Statement]:
    """深さ0の文を先行アノテーションとともに列挙する。"""
    pending: list[str] = []
    i = 0
    while True:
        i = _skip_ws(text, i)
        if i >= len(text):
            return
        if text[i] == "@":
            end = _annotation_end(text, i)
            pending.append(text[i:end])
            i = end
            continue
        if text[i] == ";":
            pending = []
            i += 1
            continue
        head_end, body, end = _statement_extent(text, i)
        yield _Statement(tuple(pending), text[i:head_end], body)
        pending = []
        i = end


def _split_head(head: str) -> tuple[str, list[str]]:
    """文の先頭部分からアノテーションを取り除き、空白を正規化して返す。"""
    parts: list[str] = []
    annotations: list[str] = []
    last = 0
    i = 0
    while i < len(head):
        ch = head[i]
        if ch in _QUOTES:
            i = _string_end(head, i)
            continue
        if ch == "@":
            end = _annotation_end(head, i)
            parts.append(head[last:i])
            annotations.append(head[i:end])
            i = last = end
            continue
        i += 1
    parts.append(head[last:])
    return " ".join("".join(parts).split()), annotations


def _unwrap(value: str) -> str:
    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        return value[1:-1]
    if len(value) >= 2 and value[0] == "{" and value[-1] == "}":
        return value[1:-1].strip()
    return value


def _expand_annotation(raw: str) -> list[_Annotation]:
    """`@a: v` と `@(a: v, b: w)` の両形式を (名前, 値) の並びに展開する。"""
    body = raw[1:].strip()
    if body.startswith("("):
        inner = body[1:-1] if body.endswith(")") else body[1:]
        entries = _split_top_level(inner)
    else:
        entries = [body]
    result = []
    for entry in entries:
        name, _, value = entry.partition(":")
        result.append(_Annotation(name.strip(), _unwrap(value.strip())))
    return result


def _ord_annotations(raws: list[str], context: str) -> list[OrdAnnotation]:
    found = []
    for raw in raws:
        for annotation in _expand_annotation(raw):
            if annotation.name.startswith(ORD_ANNOTATION_PREFIX):
                found.append(
                    OrdAnnotation(
                        type=annotation.name[len(ORD_ANNOTATION_PREFIX) :],
                        value=annotation.value,
                        context=context,
                    )
                )
    return found


def _parse_elements(body: str | None) -> list[CdsElement]:
    if not body:
        return []
    elements = []
    for stmt in _iter_statements(body):
        head, _ = _split_head(stmt.head)
        m = _ELEMENT_RE.match(head)
        if not m:
            continue
        type_ = m["type"].strip()
        if stmt.body is not None:
            type_ = f"{type_} {{ {' '.join(stmt.body.split())} }}".strip()
        if type_:
            elements.append(CdsElement(name=m["name"], type=type_))
    return elements


def _parse_entity(rest: str, body: str | None) -> CdsEntity | None:
    m = _ENTITY_RE.match(rest)
    if not m:
        return None
    return CdsEntity(
        name=m["name"],
        extends=m["extends"].strip() if m["extends"] else None,
        projection_of=m["projection"] or m["select"],
        elements=_parse_elements(body),
    )


def _parse_event(rest: str, body: str | None) -> CdsEvent | None:
    m = _NAME_RE.match(rest)
    if not m:
        return None
    return CdsEvent(name=m.group(0), elements=_parse_elements(body))


def _parse_operation(kind: str, rest: str, body: str | None) -> CdsOperation | None:
    m = re.match(r"(\w+)\s*", rest)
    if not m:
        return None
    j = m.end()
    params = ""
    if rest[j : j + 1] == "(":
        close = _block_end(rest, j)
        params = rest[j + 1 : close - 1]
        j = close
    returns = None
    rm = _RETURNS_RE.match(rest[j:].strip())
    if rm:
        returns = rm["type"].strip()
    if body is not None:
        returns = f"{returns or ''} {{ {' '.join(body.split())} }}".strip()

    parameters = []
    for part in _split_top_level(params):
        cleaned, _ = _split_head(part)
        pm = _ELEMENT_RE.match(cleaned)
        if pm:
            parameters.append(CdsElement(name=pm["name"], type=pm["type"].strip()))
    return CdsOperation(kind=kind, name=m.group(1), parameters=parameters, returns=returns or None)


def _parse_service(rest: str, raws: list[str], body: str | None) -> CdsService | None:
    m = _NAME_RE.match(rest)
    if not m:
        return None
    name = m.group(0)
    path = None
    for raw in raws:
        for annotation in _expand_annotation(raw):
            if annotation.name == "path" and path is None:
                path = annotation.value

    service = CdsService(name=name, path=path, ord_annotations=_ord_annotations(raws, name))
    for stmt in _iter_statements(body or ""):
        head, head_raws = _split_head(stmt.head)
        km = _KEYWORD_RE.match(head)
        if not km:
            continue
        kind, member_rest = km["kind"], km["rest"]
        if kind == "entity":
            entity = _parse_entity(member_rest, stmt.body)
            if entity:
                service.entities.append(entity)
        elif kind == "event":
            event = _parse_event(member_rest, stmt.body)
            if event:
                service.events.append(event)
        elif kind in ("action", "function"):
            operation = _parse_operation(kind, member_rest, stmt.body)
            if operation:
                service.operations.append(operation)
        else:
            continue
        service.ord_annotations.extend(_ord_annotations([*stmt.annotations, *head_raws], name))
    return service


def _collect(text: str, model: CdsModel, annotate_targets: list[tuple[str, list[str]]]) -> None:
    for stmt in _iter_statements(text):
        head, head_raws = _split_head(stmt.head)
        m = _KEYWORD_RE.match(head)
        if not m:
            continue
        kind, rest = m["kind"], m["rest"]
        raws = [*stmt.annotations, *head_raws]
        if kind == "service":
            service = _parse_service(rest, raws, stmt.body)
            if service:
                model.services.append(service)
                model.ord_annotations.extend(service.ord_annotations)
        elif kind == "entity":
            entity = _parse_entity(rest, stmt.body)
            if entity:
                model.entities.append(entity)
                model.ord_annotations.extend(_ord_annotations(raws, "global"))
        elif kind == "event":
            event = _parse_event(rest, stmt.body)
            if event:
                model.events.append(event)
                model.ord_annotations.extend(_ord_annotations(raws, "global"))
        elif kind == "context" and stmt.body is not None:
            _collect(stmt.body, model, annotate_targets)
        elif kind == "annotate" and rest:
            annotate_targets.append((rest.split()[0], raws))


def parse_cds(content: str) -> CdsModel:
    """CDSソースを解析する。

    `@ORD.Extensions.*` アノテーションは、直前または内部に書かれたサービスに
    紐づけられる。`annotate <Service> with @...` の形式も対象サービスに割り当てる。

    Args:
        content: CDSソース文字列。

    Returns:
        解析結果。認識できない構文は無視する。
    """
    text = strip_comments(content)
    ns = _NAMESPACE_RE.search(text)
    model = CdsModel(
        namespace=ns.group(1) if ns else None,
        imports=[m["source"] for m in _USING_RE.finditer(text)],
    )
    annotate_targets: list[tuple[str, list[str]]] = []
    _collect(text, model, annotate_targets)

    services = {s.name: s for s in model.services}
    for target, raws in annotate_targets:
        service = services.get(target) or services.get(target.rsplit(".", 1)[-1])
        annotations = _ord_annotations(raws, service.name if service else "global")
        if service:
            service.ord_annotations.extend(annotations)
        model.ord_annotations.extend(annotations)
    return model
