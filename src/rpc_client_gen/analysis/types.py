"""Type analysis over controller sources.

Handlers are read statically: annotations are ``ast`` expressions rendered
to TypeScript type text, and canonical type names are resolved structurally
from the same expressions.
"""

import ast
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from rpc_client_gen.analysis.project import AstProject, SourceModule
from rpc_client_gen.errors import TypeResolutionError

CONTROLLER_SUFFIX = "Controller"

PRIMITIVE_TS_TYPES = {
    "str": "string",
    "bytes": "string",
    "bytearray": "string",
    "datetime": "string",
    "date": "string",
    "time": "string",
    "UUID": "string",
    "Path": "string",
    "EmailStr": "string",
    "HttpUrl": "string",
    "AnyUrl": "string",
    "int": "number",
    "float": "number",
    "complex": "number",
    "Decimal": "number",
    "timedelta": "number",
    "bool": "boolean",
    "None": "null",
    "NoneType": "null",
    "Any": "any",
    "object": "unknown",
    "dict": "Record<string, any>",
    "Dict": "Record<string, any>",
    "Mapping": "Record<string, any>",
    "list": "any[]",
    "List": "any[]",
    "set": "any[]",
    "tuple": "any[]",
}

LIST_LIKE = frozenset({
    "list", "List", "Sequence", "MutableSequence", "Iterable", "Iterator", "Collection",
    "set", "Set", "MutableSet", "frozenset", "FrozenSet", "AbstractSet", "deque", "Deque",
})
TUPLE_LIKE = frozenset({"tuple", "Tuple"})
MAPPING_LIKE = frozenset({
    "dict", "Dict", "Mapping", "MutableMapping", "DefaultDict", "defaultdict", "OrderedDict",
})
ASYNC_LIKE = frozenset({"Awaitable", "Coroutine", "AsyncIterator", "AsyncIterable"})
TRANSPARENT_WRAPPERS = frozenset({"Annotated", "Required", "NotRequired", "ReadOnly", "Final"})

# Containers unwrapped one level when looking for the named type they carry.
UNWRAP_GENERICS = LIST_LIKE | TUPLE_LIKE | ASYNC_LIKE | TRANSPARENT_WRAPPERS | {"Optional", "Union"}

# Names that never count as a referenced type.
BUILTIN_TYPES = frozenset(PRIMITIVE_TS_TYPES) | MAPPING_LIKE | frozenset({
    "Literal", "Callable", "type", "Type", "TypeVar", "Generator", "AsyncGenerator",
})


def symbol_name(node: ast.expr) -> str:
    """Name of the symbol an annotation refers to, without module qualification."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return ast.unparse(node)


def parse_annotation(text: str) -> ast.expr:
    """Parse a string (forward reference) annotation."""
    try:
        return ast.parse(text.strip(), mode="eval").body
    except SyntaxError as e:
        raise TypeResolutionError(f"Invalid type annotation: {text!r}") from e


def type_arguments(node: ast.expr | None) -> list[ast.expr]:
    if not isinstance(node, ast.Subscript):
        return []
    if isinstance(node.slice, ast.Tuple):
        return list(node.slice.elts)
    return [node.slice]


def _is_none(node: ast.expr) -> bool:
    return (isinstance(node, ast.Constant) and node.value is None) or (
        isinstance(node, (ast.Name, ast.Attribute)) and symbol_name(node) in ("None", "NoneType")
    )


def _union_members(node: ast.expr) -> list[ast.expr]:
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _union_members(node.left) + _union_members(node.right)
    return [node]


def _join_union(members: list[str]) -> str:
    return " | ".join(dict.fromkeys(members))


def _array_of(item: str) -> str:
    if " | " in item or " & " in item:
        return f"({item})[]"
    return f"{item}[]"


def ts_string_literal(value: str) -> str:
    """Quote a string as a single-quoted TypeScript literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def _literal(node: ast.expr) -> str:
    if not isinstance(node, ast.Constant):
        return "any"
    value = node.value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return ts_string_literal(value)
    return str(value)


def render_type(node: ast.expr | None, is_return: bool = False) -> str:
    """Render a Python annotation as TypeScript type text."""
    if node is None:
        return "any"

    if isinstance(node, ast.Constant):
        if isinstance(node.value, str):
            return render_type(parse_annotation(node.value), is_return)
        if node.value is None:
            return "void" if is_return else "null"
        return "any"

    if isinstance(node, (ast.Name, ast.Attribute)):
        name = symbol_name(node)
        if is_return and name in ("None", "NoneType"):
            return "void"
        return PRIMITIVE_TS_TYPES.get(name, name)

    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _join_union([render_type(m) for m in _union_members(node)])

    if isinstance(node, ast.Subscript):
        name = symbol_name(node.value)
        args = type_arguments(node)

        if name == "Optional":
            return _join_union([render_type(args[0]), "null"])
        if name == "Union":
            return _join_union([render_type(a) for a in args])
        if name in TRANSPARENT_WRAPPERS:
            return render_type(args[0], is_return)
        if name == "Literal":
            return _join_union([_literal(a) for a in args])
        if name in LIST_LIKE:
            return _array_of(render_type(args[0]))
        if name in TUPLE_LIKE:
            if len(args) == 2 and isinstance(args[1], ast.Constant) and args[1].value is Ellipsis:
                return _array_of(render_type(args[0]))
            return f"[{', '.join(render_type(a) for a in args)}]"
        if name in MAPPING_LIKE:
            key = render_type(args[0]) if args else "string"
            if key not in ("string", "number"):
                key = "string"
            value = render_type(args[1]) if len(args) > 1 else "any"
            return f"Record<{key}, {value}>"
        if name in ASYNC_LIKE:
            return f"Promise<{render_type(args[-1])}>"
        if name in ("type", "Type", "Callable"):
            return "any"
        return f"{name}<{', '.join(render_type(a) for a in args)}>"

    raise TypeResolutionError(f"Unsupported type annotation: {ast.unparse(node)}")


def canonical_type_name(node: ast.expr | None) -> str | None:
    """Resolve an annotation to the named type it references.

    Wrapper generics are unwrapped one level per recursion, built-in names
    are discarded, and anything else contributes its symbol name.
    """
    if node is None:
        return None

    if isinstance(node, ast.Constant):
        if isinstance(node.value, str):
            return canonical_type_name(parse_annotation(node.value))
        return None

    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        members = [m for m in _union_members(node) if not _is_none(m)]
        return canonical_type_name(members[0]) if members else None

    if isinstance(node, (ast.Name, ast.Attribute)):
        name = symbol_name(node)
        return None if name in BUILTIN_TYPES or name in UNWRAP_GENERICS else name

    if isinstance(node, ast.Subscript):
        name = symbol_name(node.value)
        if name in UNWRAP_GENERICS:
            args = [a for a in type_arguments(node) if not _is_none(a)]
            if not args:
                return None
            return canonical_type_name(args[-1] if name == "Coroutine" else args[0])
        return None if name in BUILTIN_TYPES else name

    return None


# -- handles ----------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class ClassDeclaration:
    name: str
    node: ast.ClassDef
    module: SourceModule


@dataclass(frozen=True, eq=False)
class MethodHandle:
    name: str
    node: ast.FunctionDef | ast.AsyncFunctionDef
    module: SourceModule

    @property
    def is_static(self) -> bool:
        return any(symbol_name(d) == "staticmethod" for d in self.node.decorator_list)

    @property
    def parameters(self) -> list[ast.arg]:
        """Declared parameters in call order, without ``self``/``cls``."""
        args = self.node.args
        positional = args.posonlyargs + args.args
        if not self.is_static:
            positional = positional[1:]
        return positional + args.kwonlyargs


@dataclass(frozen=True, eq=False)
class TypeHandle:
    node: ast.expr | None
    module: SourceModule | None = None


# -- provider ---------------------------------------------------------------------


class TypeAnalysisSession(ABC):
    """Type queries over one parsed project; closed when the ``with`` block exits."""

    def __enter__(self) -> "TypeAnalysisSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def list_controller_classes(self) -> dict[str, ClassDeclaration]: ...

    @abstractmethod
    def get_methods(self, declaration: ClassDeclaration) -> list[MethodHandle]: ...

    @abstractmethod
    def get_method(self, declaration: ClassDeclaration, name: str) -> MethodHandle | None: ...

    @abstractmethod
    def get_parameter_names(self, method: MethodHandle) -> list[str]: ...

    @abstractmethod
    def get_parameter_type(self, method: MethodHandle, index: int) -> TypeHandle: ...

    @abstractmethod
    def get_parameter_type_text(self, method: MethodHandle, index: int) -> str: ...

    @abstractmethod
    def get_return_type(self, method: MethodHandle) -> TypeHandle: ...

    @abstractmethod
    def get_return_type_text(self, method: MethodHandle) -> str: ...

    @abstractmethod
    def get_type_arguments(self, type_handle: TypeHandle) -> list[TypeHandle]: ...

    @abstractmethod
    def resolve_canonical_type_name(self, type_handle: TypeHandle) -> str | None: ...


class TypeAnalysisProvider(ABC):
    @abstractmethod
    def open(self, pattern: str, project_root: Path) -> TypeAnalysisSession:
        """Acquire a session over the controller files matching *pattern*."""


class AstTypeAnalysisSession(TypeAnalysisSession):
    def __init__(self, project: AstProject):
        self.project = project

    def close(self) -> None:
        self.project.close()

    def list_controller_classes(self) -> dict[str, ClassDeclaration]:
        controllers: dict[str, ClassDeclaration] = {}
        for module in self.project.roots:
            for name, node in module.classes.items():
                if name.endswith(CONTROLLER_SUFFIX) and name not in controllers:
                    controllers[name] = ClassDeclaration(name, node, module)
        return controllers

    def get_methods(self, declaration: ClassDeclaration) -> list[MethodHandle]:
        """Public methods of a class, in declaration order."""
        return [
            MethodHandle(node.name, node, declaration.module)
            for node in declaration.node.body
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and not node.name.startswith("_")
        ]

    def get_method(self, declaration: ClassDeclaration, name: str) -> MethodHandle | None:
        for node in declaration.node.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == name:
                return MethodHandle(node.name, node, declaration.module)
        return None

    def get_parameter_names(self, method: MethodHandle) -> list[str]:
        return [arg.arg for arg in method.parameters]

    def get_parameter_type(self, method: MethodHandle, index: int) -> TypeHandle:
        return TypeHandle(method.parameters[index].annotation, method.module)

    def get_parameter_type_text(self, method: MethodHandle, index: int) -> str:
        return render_type(method.parameters[index].annotation)

    def get_return_type(self, method: MethodHandle) -> TypeHandle:
        return TypeHandle(method.node.returns, method.module)

    def get_return_type_text(self, method: MethodHandle) -> str:
        returns = method.node.returns
        if isinstance(returns, ast.Name) and returns.id in method.module.aliases:
            return returns.id
        return render_type(returns, is_return=True)

    def get_type_arguments(self, type_handle: TypeHandle) -> list[TypeHandle]:
        return [TypeHandle(arg, type_handle.module) for arg in type_arguments(type_handle.node)]

    def resolve_canonical_type_name(self, type_handle: TypeHandle) -> str | None:
        return canonical_type_name(type_handle.node)


class AstTypeAnalysisProvider(TypeAnalysisProvider):
    """Type analysis backed by the standard library ``ast`` parser."""

    def open(self, pattern: str, project_root: Path) -> AstTypeAnalysisSession:
        return AstTypeAnalysisSession(AstProject(pattern, project_root))
