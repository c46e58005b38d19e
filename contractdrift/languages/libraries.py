"""Static name tables used to suppress false positives in consumer code."""

from __future__ import annotations

# Identifiers that look like calls but are keywords, globals or test helpers.
KEYWORDS_AND_BUILTINS = frozenset(
    {
        "if", "else", "for", "while", "do", "switch", "case", "break", "continue",
        "return", "throw", "try", "catch", "finally", "new", "delete", "typeof",
        "void", "this", "super", "class", "extends", "function", "async", "await",
        "yield", "in", "of", "instanceof", "satisfies", "keyof",
        "console", "log", "error", "warn", "info", "debug", "trace", "table",
        "require", "import", "export", "default", "from", "as",
        "parseInt", "parseFloat", "isNaN", "isFinite", "encodeURIComponent",
        "decodeURIComponent", "encodeURI", "decodeURI", "structuredClone",
        "setTimeout", "setInterval", "clearTimeout", "clearInterval",
        "setImmediate", "queueMicrotask", "requestAnimationFrame",
        "fetch", "then", "map", "filter", "reduce", "forEach", "find", "some", "every",
        "push", "pop", "shift", "unshift", "slice", "splice", "concat",
        "describe", "it", "test", "expect", "beforeEach", "afterEach",
        "beforeAll", "afterAll", "jest", "vi",
    }
)

# Runtime objects whose members never belong to project contracts.
BUILTIN_OBJECTS = frozenset(
    {
        "console", "Math", "JSON", "Object", "Array", "Promise", "Date", "String",
        "Number", "Boolean", "RegExp", "Error", "Symbol", "Map", "Set", "WeakMap",
        "WeakSet", "Reflect", "Proxy", "Intl", "process", "Buffer", "global",
        "globalThis", "window", "document", "navigator", "localStorage",
        "sessionStorage", "location", "history", "module", "exports", "import", "this",
        "super",
    }
)

# Property and method names common to builtin values (arrays, promises, responses).
BUILTIN_MEMBERS = frozenset(
    {
        "length", "map", "filter", "reduce", "forEach", "find", "findIndex", "some",
        "every", "includes", "indexOf", "slice", "splice", "concat", "join", "split",
        "trim", "toLowerCase", "toUpperCase", "toString", "valueOf", "keys", "values",
        "entries", "push", "pop", "shift", "unshift", "sort", "reverse", "flat",
        "flatMap", "startsWith", "endsWith", "replace", "match", "padStart", "padEnd",
        "then", "catch", "finally", "resolve", "reject", "all", "race", "allSettled",
        "prototype", "constructor", "call", "apply", "bind",
        "log", "error", "warn", "info", "debug", "table",
        "json", "body", "headers", "status", "statusText", "ok", "text",
        "get", "set", "has", "delete", "clear", "size", "add",
    }
)

# Properties of DOM and synthetic UI events; events are globals, never imported.
DOM_EVENT_MEMBERS = frozenset(
    {
        "pageX", "pageY", "clientX", "clientY", "screenX", "screenY", "offsetX",
        "offsetY", "movementX", "movementY", "metaKey", "ctrlKey", "altKey", "shiftKey",
        "keyCode", "charCode", "which", "button", "buttons", "deltaX", "deltaY", "deltaZ",
        "deltaMode", "currentTarget", "relatedTarget", "nativeEvent", "defaultPrevented",
        "isTrusted", "touches", "changedTouches", "targetTouches", "dataTransfer",
        "clipboardData", "isComposing",
    }
)

# Conventional parameter names for framework request, response and event
# objects. Member chains rooted at them are not contract usages.
FRAMEWORK_ROOTS = frozenset({"req", "res", "ctx", "event", "evt", "e"})

# Object and field names idiomatic to third-party libraries, keyed by the
# import specifier prefix that identifies the library.
KNOWN_LIBRARIES: dict[str, frozenset[str]] = {
    "react": frozenset(
        {"props", "state", "ref", "current", "children", "key", "event", "target", "value",
         "preventDefault", "stopPropagation", "style", "className"}
    ),
    "next/router": frozenset({"router", "query", "pathname", "asPath", "push", "replace"}),
    "next/navigation": frozenset({"router", "params", "searchParams", "push", "replace"}),
    "chart.js": frozenset(
        {"chart", "data", "datasets", "labels", "options", "scales", "plugins", "dataKey",
         "legend", "tooltip", "update", "destroy"}
    ),
    "reactflow": frozenset(
        {"node", "nodes", "edge", "edges", "data", "source", "target", "sourceHandle",
         "targetHandle", "position", "positionAbsolute", "selected", "dragging", "handle"}
    ),
    "@xyflow/react": frozenset(
        {"node", "nodes", "edge", "edges", "data", "source", "target", "sourceHandle",
         "targetHandle", "position", "selected", "dragging", "handle"}
    ),
    "react-chartjs-2": frozenset({"chart", "data", "datasets", "labels", "options", "dataKey"}),
    "recharts": frozenset(
        {"chart", "payload", "dataKey", "activeIndex", "activePayload", "label", "fill", "stroke"}
    ),
    "echarts": frozenset({"chart", "series", "xAxis", "yAxis", "option", "dataKey", "setOption"}),
    "d3": frozenset({"svg", "scale", "axis", "domain", "range", "attr", "datum", "enter", "exit"}),
    "@prisma/client": frozenset(
        {"prisma", "findUnique", "findMany", "findFirst", "create", "update", "upsert",
         "where", "select", "include", "orderBy", "data"}
    ),
    "mongoose": frozenset(
        {"model", "schema", "Schema", "Types", "ObjectId", "findById", "findOne", "lean",
         "exec", "populate", "save", "_id"}
    ),
    "sequelize": frozenset(
        {"sequelize", "model", "findAll", "findByPk", "findOne", "where", "attributes",
         "dataValues", "transaction"}
    ),
    "typeorm": frozenset(
        {"repository", "manager", "getRepository", "createQueryBuilder", "findOneBy", "where",
         "andWhere", "getMany", "getOne"}
    ),
    "express": frozenset(
        {"req", "res", "next", "app", "router", "params", "query", "body", "cookies",
         "locals", "send", "json", "status", "use", "listen", "route"}
    ),
    "fastify": frozenset(
        {"request", "reply", "server", "params", "query", "body", "send", "code", "register",
         "listen", "log"}
    ),
    "axios": frozenset(
        {"axios", "response", "data", "config", "interceptors", "request", "headers",
         "baseURL", "timeout"}
    ),
}


def library_names(specifiers: list[str]) -> frozenset[str]:
    """Names suppressed for a file importing the given external specifiers."""
    names: set[str] = set()
    for spec in specifiers:
        for library, ignored in KNOWN_LIBRARIES.items():
            if spec == library or spec.startswith(library + "/"):
                names |= ignored
    return frozenset(names)
