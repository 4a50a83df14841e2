# tierguard:domain=analysis
"""Tests for tierguard.analysis.diff_mapper: unified diff to changed lines and new names."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tierguard.analysis.diff_mapper import (
    DiffMapping,
    changed_line_numbers,
    map_diff,
    map_file_diff,
    new_construct_names,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

HUNK_DIFF = """\
diff --git a/src/a.ts b/src/a.ts
index 1111111..2222222 100644
--- a/src/a.ts
+++ b/src/a.ts
@@ -10,3 +10,4 @@ export class A {
 const first = 1;
+const added = 2;
 const second = 3;
+const another = 4;
"""


# ---------------------------------------------------------------------------
# changed_line_numbers
# ---------------------------------------------------------------------------


class TestChangedLineNumbers:
    def test_single_hunk(self) -> None:
        assert changed_line_numbers(HUNK_DIFF) == {11, 13}

    def test_deletions_do_not_advance(self) -> None:
        diff = "@@ -1,3 +1,2 @@\n keep\n-gone\n-gone too\n+new\n"
        assert changed_line_numbers(diff) == {2}

    def test_multiple_hunks(self) -> None:
        diff = "@@ -1,1 +1,2 @@\n+top\n ctx\n@@ -40 +41,2 @@\n ctx\n+bottom\n"
        assert changed_line_numbers(diff) == {1, 42}

    def test_headers_outside_hunks_ignored(self) -> None:
        diff = "--- a/x.ts\n+++ b/x.ts\n"
        assert changed_line_numbers(diff) == set()

    def test_no_newline_marker(self) -> None:
        diff = "@@ -1 +1 @@\n-old\n\\ No newline at end of file\n+new\n"
        assert changed_line_numbers(diff) == {1}

    def test_empty(self) -> None:
        assert changed_line_numbers("") == set()


# ---------------------------------------------------------------------------
# new_construct_names
# ---------------------------------------------------------------------------


class TestNewConstructNames:
    def test_declaration_shapes(self) -> None:
        diff = "\n".join(
            [
                "+export function loadUser(id: string): User {",
                "+export const handler = async (event: Event) => {",
                "+const legacy = function () {",
                "+  private static async save(user: User): Promise<void> {",
                "+  render() {",
            ]
        )
        assert new_construct_names(diff) == {"loadUser", "handler", "legacy", "save", "render"}

    def test_keywords_and_constructor_excluded(self) -> None:
        diff = "+  if (ready) {\n+  for (const x of xs) {\n+  constructor(private a: A) {}\n"
        assert new_construct_names(diff) == set()

    def test_only_added_lines(self) -> None:
        diff = "+++ b/src/a.ts\n-function removed() {\n function kept() {\n"
        assert new_construct_names(diff) == set()


def test_map_diff() -> None:
    mapping = map_diff("@@ -0,0 +1,2 @@\n+function fresh() {\n+}\n")
    assert mapping == DiffMapping(
        changed_lines=frozenset({1, 2}), new_names=frozenset({"fresh"})
    )


def test_map_empty_diff() -> None:
    assert map_diff("") == DiffMapping.empty()


# ---------------------------------------------------------------------------
# map_file_diff against a real repository
# ---------------------------------------------------------------------------


class TestMapFileDiff:
    def test_modified_file(self, git_repo: Path, commit: Callable[..., str]) -> None:
        base = commit(git_repo, {"src/a.ts": "const a = 1;\nconst b = 2;\n"})
        (git_repo / "src/a.ts").write_text(
            "const a = 1;\nfunction added(): void {}\nconst b = 2;\n"
        )
        mapping = map_file_diff(git_repo, "src/a.ts", base)
        assert mapping.changed_lines == frozenset({2})
        assert mapping.new_names == frozenset({"added"})

    def test_untracked_file_is_all_additions(
        self, git_repo: Path, commit: Callable[..., str]
    ) -> None:
        base = commit(git_repo, {"README.md": "hi\n"})
        (git_repo / "src").mkdir()
        (git_repo / "src/new.ts").write_text("export function hello(): void {\n}\n")
        mapping = map_file_diff(git_repo, "src/new.ts", base)
        assert {1, 2} <= set(mapping.changed_lines)
        assert mapping.new_names == frozenset({"hello"})

    def test_between_commits(self, git_repo: Path, commit: Callable[..., str]) -> None:
        base = commit(git_repo, {"src/a.ts": "const a = 1;\n"})
        head = commit(git_repo, {"src/a.ts": "const a = 1;\nconst b = 2;\n"})
        (git_repo / "src/a.ts").write_text("const changedAfterHead = 0;\n")
        mapping = map_file_diff(git_repo, "src/a.ts", base, head)
        assert mapping.changed_lines == frozenset({2})

    def test_unknown_ref_fails_open(self, git_repo: Path, commit: Callable[..., str]) -> None:
        commit(git_repo, {"src/a.ts": "const a = 1;\n"})
        assert map_file_diff(git_repo, "src/a.ts", "no-such-ref") == DiffMapping.empty()
