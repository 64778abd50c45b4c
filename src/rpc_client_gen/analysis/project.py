"""Parsed view of the controller sources and the project modules they import."""

import ast
import glob
import logging
from collections import deque
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

from rpc_client_gen.errors import TypeResolutionError

logger = logging.getLogger(__name__)

SOURCE_DIRS = ("", "src")


@dataclass
class SourceModule:
    """One parsed Python file."""

    path: Path
    tree: ast.Module
    classes: dict[str, ast.ClassDef] = field(default_factory=dict)
    aliases: dict[str, ast.expr] = field(default_factory=dict)

    @classmethod
    def parse(cls, path: Path) -> "SourceModule":
        try:
            tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        except SyntaxError as e:
            raise TypeResolutionError(f"Cannot parse {path}: {e.msg} (line {e.lineno})") from e

        module = cls(path=path, tree=tree)
        for node in tree.body:
            if isinstance(node, ast.ClassDef):
                module.classes[node.name] = node
            else:
                alias = _alias_definition(node)
                if alias:
                    module.aliases[alias[0]] = alias[1]
        return module


def _alias_definition(node: ast.stmt) -> tuple[str, ast.expr] | None:
    """Recognize ``type X = ...``, ``X: TypeAlias = ...`` and ``X = Generic[...]``."""
    type_alias = getattr(ast, "TypeAlias", None)
    if type_alias is not None and isinstance(node, type_alias):
        return node.name.id, node.value

    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name) and node.value is not None:
        annotation = node.annotation
        name = annotation.attr if isinstance(annotation, ast.Attribute) else getattr(annotation, "id", None)
        if name == "TypeAlias":
            return node.target.id, node.value

    if isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
        target = node.targets[0].id
        value = node.value
        is_type_expr = isinstance(value, ast.Subscript) or (
            isinstance(value, ast.BinOp) and isinstance(value.op, ast.BitOr)
        )
        if target[:1].isupper() and is_type_expr:
            return target, value
    return None


class AstProject:
    """Controller files matched by a glob pattern, plus project modules reached through imports.

    Modules are parsed on demand and cached until ``close()``.
    """

    def __init__(self, pattern: str, project_root: Path):
        self.pattern = pattern
        self.project_root = Path(project_root).resolve()
        self._modules: dict[Path, SourceModule] = {}
        self.roots = [self.load(path) for path in self._match_files()]
        logger.debug("Loaded %d controller files for pattern %s", len(self.roots), pattern)

    def _match_files(self) -> list[Path]:
        pattern = self.pattern if Path(self.pattern).is_absolute() else str(self.project_root / self.pattern)
        return [Path(p).resolve() for p in sorted(glob.glob(pattern, recursive=True)) if p.endswith(".py")]

    def load(self, path: Path) -> SourceModule:
        if path not in self._modules:
            self._modules[path] = SourceModule.parse(path)
        return self._modules[path]

    def close(self) -> None:
        """Drop every parsed module."""
        self._modules.clear()
        self.roots = []

    def __enter__(self) -> "AstProject":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- import resolution ----------------------------------------------------

    def _module_file(self, base: Path, dotted: str) -> Path | None:
        parts = [p for p in dotted.split(".") if p]
        candidate = base.joinpath(*parts) if parts else base
        for path in (candidate.with_suffix(".py") if parts else None, candidate / "__init__.py"):
            if path is not None and path.is_file():
                return path.resolve()
        return None

    def _absolute_module(self, dotted: str) -> Path | None:
        for source_dir in SOURCE_DIRS:
            path = self._module_file(self.project_root / source_dir, dotted)
            if path is not None:
                return path
        return None

    def imported_modules(self, module: SourceModule) -> list[Path]:
        """Project files imported by a module; third-party imports are ignored."""
        found: list[Path] = []
        for node in ast.walk(module.tree):
            if isinstance(node, ast.Import):
                found.extend(self._absolute_module(a.name) for a in node.names)
            elif isinstance(node, ast.ImportFrom):
                if node.level:
                    resolve = partial(self._module_file, module.path.parents[node.level - 1])
                else:
                    resolve = self._absolute_module
                dotted = node.module or ""
                found.append(resolve(dotted))
                found.extend(resolve(f"{dotted}.{a.name}" if dotted else a.name) for a in node.names)
        return [p for p in dict.fromkeys(found) if p is not None]

    def find_declaration(self, name: str) -> tuple[SourceModule, ast.ClassDef | ast.expr] | None:
        """Find a class or type alias by name, breadth-first from the controller files."""
        queue = deque(m.path for m in self.roots)
        seen: set[Path] = set()
        while queue:
            path = queue.popleft()
            if path in seen:
                continue
            seen.add(path)
            try:
                module = self.load(path)
            except TypeResolutionError as e:
                logger.warning("Skipping unparsable module: %s", e)
                continue
            if name in module.classes:
                return module, module.classes[name]
            if name in module.aliases:
                return module, module.aliases[name]
            queue.extend(self.imported_modules(module))
        return None
