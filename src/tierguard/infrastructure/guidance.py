# tierguard:domain=infrastructure
"""Remediation guidance: markdown notes written to ``tmp/tierguard/`` when a check fails."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

GUIDANCE_DIR = "tmp/tierguard"

METHODSIZE_DOC = """\
# Method too long

Long methods hide their intent. The fix is almost always mechanical:

1. Read the method and name the steps it performs.
2. Extract each step into a private method whose name says what it does.
3. Leave the original method as a short sequence of calls that reads like
   a table of contents.

Typical seams:

- validation before the real work
- each branch of a large `if`/`switch`
- loop bodies
- building a request or response object

If splitting genuinely hurts readability (a state machine, a generated
mapping table), add a dated disable directive above the method:

```ts
// tierguard-disable max-lines-new-methods 2026/01/31 -- state machine, one case per event
```

Use `max-lines-modified-methods` for methods you only edited, or
`max-lines-new-and-modified` to cover both. The directive expires one month
after its date; `XXXX/XX/XX` never expires and should be rare.
"""

FILESIZE_DOC = """\
# File too long

Large files slow editors down and usually mix several responsibilities.
With stateless services and constructor injection, splitting is cheap:

1. Pick a group of related methods.
2. Move them to a new class in a new file (a placeholder name is fine at
   first, rename once the shape is clear).
3. Inject the new class wherever those methods were used and delete them
   from the original.

If the file must stay large for now, put a dated directive in its first
five lines:

```ts
// tierguard-disable max-lines-modified-files 2026/01/31 -- split planned with the billing rewrite
```

The directive expires one month after its date.
"""

DEPENDENCIES_DOC = """\
# Architecture graph changed

The dependency graph computed from the project manifests no longer matches
the committed snapshot.

If the change is intended:

1. Run `tierguard generate` to rewrite the snapshot.
2. Run `tierguard visualize --open` and check the new layering.
3. Commit the updated snapshot together with the code change.

If it is not intended, remove the new build dependency from the project
manifest instead. Dependencies must point downward: a project may depend
only on projects in lower levels, and cycles are never allowed.
"""

TRANSITIVEDEPS_DOC = """\
# Redundant dependency

A project declares a dependency that it already receives through another
dependency. Declaring it again adds an edge that skips a level and makes
the graph harder to read.

Remove the redundant entry from the project manifest (and from its
`package.json`, if present), then run `tierguard generate` and commit the
updated snapshot.
"""

RETURNTYPES_DOC = """\
# Missing return type

Annotate the return type explicitly instead of relying on inference:

```ts
// before
loadUser(id: string) { return this.repo.find(id); }
// after
loadUser(id: string): Promise<UserDto> { return this.repo.find(id); }
```

Escape hatch: `// tierguard-disable require-return-type -- reason`.
"""

INLINETYPES_DOC = """\
# Inline type literal

Anonymous object and tuple types are only allowed as the body of a
`type` alias. Give the shape a name and use the name:

```ts
// before
function save(opts: { force: boolean }): [Item[], number] { ... }
// after
type SaveOptions = { force: boolean };
type SavePage = [Item[], number];
function save(opts: SaveOptions): SavePage { ... }
```

Escape hatch: `// tierguard-disable no-inline-types -- reason`.
"""

ANYUNKNOWN_DOC = """\
# any / unknown

`any` switches type checking off and `unknown` pushes the checking onto
every caller. Replace them with a concrete type, an interface or a
generic parameter.

Escape hatch: `// tierguard-disable no-any-unknown -- reason`.
"""

DESTRUCTURE_DOC = """\
# Destructuring

Destructuring hides where a value came from. Use property access:

```ts
// before
const { name, age } = user;
// after
const name = user.name;
const age = user.age;
```

Allowed: `const [a, b] = await Promise.all([...])`,
`for (const [key, value] of map.entries())` and a pattern holding only
a rest element.

Escape hatch: `// tierguard-disable no-destructure -- reason`.
"""

DTOS_DOC = """\
# Transfer type field missing from its model

Every field of an `XxxDto` must exist on the `XxxDbo` model in the schema
(snake_case columns are compared in camelCase). The model may have extra
fields; the transfer type may not invent new ones.

Rename the field with your editor's rename refactoring so every usage is
updated. Data combined from several tables belongs in an `XxxJoinDto`
that holds the individual transfer types. Fields marked `@deprecated`
are exempt.
"""

CONVERTERS_DOC = """\
# Converter shape

A converter method that returns `XxxDto` must take the `XxxDbo` model as
its first parameter. Further parameters may only be `boolean` flags. It
must not be async, and it must live on a class so it can be injected.
Transfer types backed by a model are only constructed inside converter
directories.

Escape hatch: `// tierguard-disable prisma-converter -- reason`.
"""

GUIDANCE_DOCS: dict[str, str] = {
    "tierguard.methodsize.md": METHODSIZE_DOC,
    "tierguard.filesize.md": FILESIZE_DOC,
    "tierguard.dependencies.md": DEPENDENCIES_DOC,
    "tierguard.transitivedeps.md": TRANSITIVEDEPS_DOC,
    "tierguard.returntypes.md": RETURNTYPES_DOC,
    "tierguard.inlinetypes.md": INLINETYPES_DOC,
    "tierguard.anyunknown.md": ANYUNKNOWN_DOC,
    "tierguard.destructure.md": DESTRUCTURE_DOC,
    "tierguard.dtos.md": DTOS_DOC,
    "tierguard.converters.md": CONVERTERS_DOC,
}


def write_guidance(project_root: Path, name: str) -> Path | None:
    """Write one guidance document; returns its path, or ``None`` if it could not be written."""
    content = GUIDANCE_DOCS.get(name)
    if content is None:
        msg = f"Unknown guidance document: {name}"
        raise KeyError(msg)
    target_dir = project_root / GUIDANCE_DIR
    path = target_dir / name
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not write guidance %s: %s", path, exc)
        return None
    return path
