"""Integration tests: parse, match and highlight a realistic diff."""

import json

from diffmodel import (
    DiffMatcherConfig,
    DiffParser,
    DiffParserConfig,
    DiffLineMatcher,
    LineType,
    MatchGroupKind,
    files_from_json,
    files_to_json,
    highlight_line_pair,
)


SAMPLE_DIFF = """diff --git a/src/app.py b/src/app.py
index 83db48f..bf269f4 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,6 +1,7 @@
 import os
-import sys
+import sys, json
 def main():
-    value = load(os.environ["APP_VALUE"])
-    print(value)
+    value = load(os.environ["APP_VALUE"], strict=True)
+    print(json.dumps(value))
+    sys.exit(0)
 main()
diff --git a/README.md b/docs/README.md
similarity index 100%
rename from README.md
rename to docs/README.md
diff --git a/logo.png b/logo.png
new file mode 100644
index 0000000..1234567
Binary files /dev/null and b/logo.png differ
"""


class TestDiffIntegration:
    """End to end tests across parsing, matching and highlighting."""

    def test_parse_mixed_diff(self):
        """Test that every file in a mixed diff is recognized."""
        files = DiffParser().parse(SAMPLE_DIFF)

        assert [f.new_name for f in files] == ["src/app.py", "docs/README.md", "logo.png"]
        app, readme, logo = files
        assert app.language == "py"
        assert app.added_lines == 4
        assert app.deleted_lines == 3
        assert readme.is_rename is True
        assert readme.old_name == "README.md"
        assert logo.is_binary is True
        assert logo.is_new is True

    def test_match_and_highlight(self):
        """Test pairing changed lines and highlighting the pairs."""
        app = DiffParser().parse(SAMPLE_DIFF)[0]
        matcher = DiffLineMatcher(DiffMatcherConfig(threshold=0.4))
        runs = matcher.match_block(app.blocks[0])

        assert len(runs) == 2
        first, second = runs
        assert [g.kind for g in first.groups] == [MatchGroupKind.PAIRED]

        pairs = [g for g in second.groups if g.kind == MatchGroupKind.PAIRED]
        assert pairs[0].deleted == ('    value = load(os.environ["APP_VALUE"])',)
        assert second.groups[-1].kind == MatchGroupKind.INSERTED
        assert second.groups[-1].inserted[-1] == "    sys.exit(0)"

        highlighted = highlight_line_pair(pairs[0].deleted[0], pairs[0].inserted[0])
        changed_new = [span.text for span in highlighted.new_spans if span.changed]
        assert ''.join(changed_new).strip() == ", strict=True"
        assert not any(span.changed for span in highlighted.old_spans)

    def test_line_numbers_consistent(self):
        """Test that line numbers advance one per line on each side."""
        block = DiffParser().parse(SAMPLE_DIFF)[0].blocks[0]
        old_numbers = [line.old_number for line in block.lines if line.line_type != LineType.INSERT]
        new_numbers = [line.new_number for line in block.lines if line.line_type != LineType.DELETE]

        assert old_numbers == list(range(1, 1 + block.old_line_count))
        assert new_numbers == list(range(1, 1 + block.new_line_count))

    def test_json_round_trip(self):
        """Test that the whole model survives JSON encoding."""
        parser = DiffParser(DiffParserConfig(diff_max_line_length=20))
        files = parser.parse(SAMPLE_DIFF)
        text = files_to_json(files, pretty=True)

        assert files_from_json(text) == files
        assert json.loads(text)[1]['isRename'] is True
