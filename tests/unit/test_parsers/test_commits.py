"""Tests for the commit message classifier."""

import pytest

from winget_batch.models import CommitMatch
from winget_batch.parsers.commits import classify_commit, headline, is_maintenance


class TestClassifyCommit:
    def test_new_package_prefix(self):
        assert classify_commit("New package: Acme.Widget version 3.0.1") == CommitMatch(
            name="Acme.Widget", version="3.0.1"
        )

    def test_update_is_rejected(self):
        assert classify_commit("Update: Acme.Widget version 3.0.2") is None

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("New package: Acme.Widget version 3.0.1 (#12345)", ("Acme.Widget", "3.0.1")),
            ("Add: Acme.Widget version 2.1", ("Acme.Widget", "2.1")),
            ("Add: Acme.Widget version 2.1 (#99)", ("Acme.Widget", "2.1")),
            ("Acme.Widget version 1.0.0 (#123456)", ("Acme.Widget", "1.0.0")),
            ("Acme.Widget version 1.0.0-beta.2", ("Acme.Widget", "1.0.0-beta.2")),
            ("new package: acme.widget VERSION 4", ("acme.widget", "4")),
        ],
    )
    def test_recognised_shapes(self, message, expected):
        match = classify_commit(message)
        assert match is not None
        assert (match.name, match.version) == expected

    @pytest.mark.parametrize(
        "message",
        [
            "Remove: Acme.Widget version 1.0",
            "Delete Acme.Widget version 1.0",
            "Deprecate Acme.Widget version 1.0",
            "New version: Acme.Widget version 1.1",
            "Automatic update: Acme.Widget version 1.2",
            "Move Acme.Widget version 1.0 to Acme.Gadget",
            "update: Acme.Widget version 3.0.2",
        ],
    )
    def test_maintenance_commits_are_rejected(self, message):
        assert is_maintenance(message)
        assert classify_commit(message) is None

    @pytest.mark.parametrize(
        "message",
        ["", "   ", "Fix typo in README", "Merge branch 'master' into feature"],
    )
    def test_unrecognised_messages(self, message):
        assert classify_commit(message) is None

    def test_only_headline_is_classified(self):
        message = "New package: Acme.Widget version 3.0.1\n\nUpdate: something else version 9"
        assert classify_commit(message) == CommitMatch("Acme.Widget", "3.0.1")

    def test_body_does_not_match(self):
        message = "Fix manifests\n\nNew package: Acme.Widget version 3.0.1"
        assert classify_commit(message) is None


class TestHeadline:
    def test_first_line(self):
        assert headline("Title\n\nBody text") == "Title"

    def test_strips_leading_blank_lines(self):
        assert headline("\n  Title  \nBody") == "Title"

    def test_empty(self):
        assert headline("") == ""
