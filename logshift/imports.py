"""Import set view over a Program and the post-rewrite import reconciler."""

from __future__ import annotations

import re

from logshift.settings import RewriteSettings
from logshift.tree import (
    Ident,
    ImportDecl,
    ImportSpec,
    OpaqueType,
    Program,
    SelectorExpr,
    Signature,
    TypeSpec,
    walk,
)

_MAJOR_VERSION = re.compile(r"^v\d+$")
_GOPKG_VERSION = re.compile(r"\.v\d+$")

# blank and dot imports bind no qualifier and are never removed
UNBOUND_NAMES = {"_", "."}


def default_local_name(path: str) -> str:
    """Guess the package name an import path binds when it has no alias.

    ``github.com/rs/zerolog`` -> ``zerolog``, ``gopkg.in/yaml.v3`` -> ``yaml``,
    ``github.com/jackc/pgx/v5`` -> ``pgx``, ``github.com/go-redis/redis`` ->
    ``redis``.
    """
    segments = path.split("/")
    name = segments[-1]
    if _MAJOR_VERSION.match(name) and len(segments) > 1:
        name = segments[-2]
    name = _GOPKG_VERSION.sub("", name)
    if name.startswith("go-"):
        name = name[3:]
    return name


class ImportSet:
    """Ordered set of import specs, unique by path, across all import groups.

    Mutations mark the touched group as generated so the printer re-emits it,
    create the first group on demand, and drop a group once it is empty.
    """

    def __init__(self, program: Program):
        self.program = program

    @property
    def groups(self) -> list[ImportDecl]:
        return [d for d in self.program.decls if isinstance(d, ImportDecl)]

    @property
    def specs(self) -> list[ImportSpec]:
        return [spec for group in self.groups for spec in group.specs]

    def __contains__(self, path: str) -> bool:
        return self.get(path) is not None

    def __iter__(self):
        return iter(self.specs)

    def __len__(self) -> int:
        return len(self.specs)

    def get(self, path: str) -> ImportSpec | None:
        for spec in self.specs:
            if spec.path == path:
                return spec
        return None

    def local_name(self, path: str) -> str | None:
        spec = self.get(path)
        if spec is None:
            return None
        return spec.name or default_local_name(spec.path)

    def binds(self, name: str) -> bool:
        """Whether some import makes ``name`` a package qualifier."""
        for spec in self.specs:
            if spec.name in UNBOUND_NAMES:
                continue
            if (spec.name or default_local_name(spec.path)) == name:
                return True
        return False

    def add(self, path: str, name: str | None = None) -> bool:
        """Append an import unless the path is already imported."""
        if path in self:
            return False
        spec = ImportSpec(path, name)
        groups = self.groups
        if groups:
            group = groups[0]
            group.specs.append(spec)
        else:
            group = ImportDecl([spec])
            self.program.decls.insert(0, group)
        group.generated = True
        return True

    def discard(self, path: str) -> bool:
        """Remove the import of ``path``, and its group if that empties it."""
        changed = False
        for group in self.groups:
            survivors = [spec for spec in group.specs if spec.path != path]
            if len(survivors) == len(group.specs):
                continue
            changed = True
            if survivors:
                group.specs = survivors
                group.generated = True
            else:
                self.program.decls.remove(group)
        return changed


def references_namespace(program: Program, name: str) -> bool:
    """Whether ``name.X`` appears anywhere in the program."""
    for node in walk(program):
        if isinstance(node, SelectorExpr) and isinstance(node.x, Ident) and node.x.name == name:
            return True
        if isinstance(node, (OpaqueType, Signature, TypeSpec)) and name in node.qualifiers:
            return True
    return False


def resolve_wrap_qualifier(imports: ImportSet, settings: RewriteSettings) -> str:
    """Qualifier to call the wrap helper through in this file."""
    existing = imports.local_name(settings.wrap_import)
    if existing is not None and imports.get(settings.wrap_import).name not in UNBOUND_NAMES:
        return existing
    if imports.binds(settings.wrap_qualifier):
        return settings.wrap_alias
    return settings.wrap_qualifier


def reconcile_imports(
    program: Program,
    settings: RewriteSettings,
    *,
    rewrote: bool,
    used_wrap: bool = False,
    namespace: str | None = None,
    wrap_qualifier: str | None = None,
) -> bool:
    """Bring the imports of ``program`` in line with its contents.

    Adds the target import when anything was rewritten and the wrap helper
    import when it was used. Removes the source import when no
    ``<namespace>.X`` reference is left anywhere in the file. Returns whether
    the import set changed.
    """
    imports = ImportSet(program)
    changed = False

    if rewrote:
        changed |= imports.add(settings.target_import)

    if used_wrap:
        qualifier = wrap_qualifier or settings.wrap_qualifier
        alias = None if qualifier == default_local_name(settings.wrap_import) else qualifier
        changed |= imports.add(settings.wrap_import, alias)

    source = imports.get(settings.source_import)
    if source is not None and source.name not in UNBOUND_NAMES:
        namespace = namespace or imports.local_name(settings.source_import)
        if not references_namespace(program, namespace):
            changed |= imports.discard(settings.source_import)

    return changed
