"""Tests for the SpecialPermissions rule."""

import pytest

from claws.rules import SpecialPermissions


class TestSpecialPermissions:
    """Tests for write access to sensitive scopes."""

    def test_flags_workflow_packages_write(self, analyze):
        """Workflow-level sensitive writes are flagged at the permissions key."""
        violations = analyze(SpecialPermissions, """\
            name: Deploy

            on:
              push:
                branches:
                - main

            permissions:
              packages: write

            jobs:
              build:
                runs-on: ubuntu-latest
                steps:
                  - uses: action/checkout@v3
                  - name: push
                    run: rake release
        """)

        assert len(violations) == 1
        assert violations[0].line == 8
        assert violations[0].rule_name == "SpecialPermissions"

    def test_flags_job_packages_write(self, analyze):
        """Job-level sensitive writes are flagged at the job's permissions key."""
        violations = analyze(SpecialPermissions, """\
            name: Deploy

            on:
              push:
                branches:
                - main

            jobs:
              build:
                runs-on: ubuntu-latest
                permissions:
                  packages: write
                steps:
                  - uses: action/checkout@v3
                  - name: push
                    run: rake release
        """)

        assert len(violations) == 1
        assert violations[0].line == 11
        assert violations[0].rule_name == "SpecialPermissions"

    @pytest.mark.parametrize("scope", ["checks", "id-token", "security-events", "statuses"])
    def test_other_sensitive_scopes(self, analyze, scope):
        violations = analyze(SpecialPermissions, f"permissions:\n  {scope}: write\n")
        assert len(violations) == 1

    def test_one_violation_per_block(self, analyze):
        """Several sensitive scopes in one block are a single finding."""
        violations = analyze(SpecialPermissions, """\
            permissions:
              packages: write
              id-token: write
        """)
        assert len(violations) == 1

    @pytest.mark.parametrize(
        "permissions",
        ["permissions:\n  packages: read\n", "permissions:\n  contents: write\n", "name: CI\n"],
    )
    def test_ignores_safe_permissions(self, analyze, permissions):
        assert analyze(SpecialPermissions, permissions) == []

    def test_write_all_is_not_special(self, analyze):
        """Bulk grants are a separate finding."""
        assert analyze(SpecialPermissions, "permissions: write-all\n") == []
