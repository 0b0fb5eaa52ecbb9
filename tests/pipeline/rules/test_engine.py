"""Tests for the rule contract and dispatch engine."""

from textwrap import dedent

import pytest

from claws.models.violation import Violation
from claws.pipeline.expressions import ExpressionSyntaxError
from claws.pipeline.parse import ParseError
from claws.pipeline.rules import (
    DeclarativeHook,
    DynamicHook,
    HookBuilder,
    HookScope,
    Rule,
    RuleEngine,
    find_nearest_key,
)
from claws.pipeline.rules.engine import resolve_line
from claws.rules import BulkPermissions, EmptyName, SpecialPermissions, UnapprovedRunners

WORKFLOW = dedent("""\
    name: CI
    on: push
    jobs:
      build:
        runs-on: ubuntu-latest
        container:
          image: node:14.16
        steps:
          - name: first
            run: echo one
          - name: second
            uses: actions/checkout@v4
            with:
              ref: main
      test:
        runs-on: ubuntu-latest
        steps:
          - run: echo three
""")


def make_rule(register, data=None, name="Probe"):
    """Build a throwaway rule class around a register function."""
    attributes = {
        "description": "probe description",
        "register": lambda self, hooks: register(hooks),
        "data": lambda self: dict(data or {}),
    }
    return type(name, (Rule,), attributes)


class TestHookBuilder:
    """Tests for hook registration."""

    def test_expressions_are_compiled(self):
        """String hooks become declarative hooks with a compiled expression."""
        builder = HookBuilder()
        builder.on_job("$job.runs_on != null", highlight="runs_on", debug=True)
        hooks = builder.build()

        assert len(hooks) == 1
        hook = hooks.job[0]
        assert isinstance(hook, DeclarativeHook)
        assert hook.highlight == "runs_on"
        assert hook.debug is True
        assert hook.expression.text == "$job.runs_on != null"

    def test_callables_are_dynamic(self):
        """Callable hooks become dynamic hooks."""
        def check(workflow, job, step):
            return None

        builder = HookBuilder()
        builder.on_step(check)
        hook = builder.build().for_scope(HookScope.STEP)[0]
        assert isinstance(hook, DynamicHook)
        assert hook.name == "check"

    def test_bad_expression_fails_at_registration(self):
        """A malformed expression fails when the rule is constructed."""
        rule_class = make_rule(lambda hooks: hooks.on_workflow("$workflow.name =="))
        with pytest.raises(ExpressionSyntaxError):
            rule_class()

    def test_bad_hook_type(self):
        """Only strings and callables are hooks."""
        builder = HookBuilder()
        with pytest.raises(TypeError):
            builder.on_workflow(42)

    def test_hook_set_is_immutable(self):
        """Built hooks are tuples."""
        builder = HookBuilder()
        builder.on_workflow("true")
        hooks = builder.build()
        assert isinstance(hooks.workflow, tuple)
        with pytest.raises(AttributeError):
            hooks.workflow = ()


class TestRule:
    """Tests for the Rule base class."""

    def test_name_defaults_to_class_name(self):
        """The rule name is the class name."""
        rule = make_rule(lambda hooks: None, name="MyRule")()
        assert rule.name == "MyRule"

    def test_configuration_is_frozen(self):
        """Configuration cannot be changed after load."""
        rule = make_rule(lambda hooks: None)({"a": 1})
        assert rule.configuration["a"] == 1
        with pytest.raises(TypeError):
            rule.configuration["a"] = 2

    def test_repr(self):
        """repr summarizes the hook counts."""
        def register(hooks):
            hooks.on_workflow("true")
            hooks.on_step("true")
            hooks.on_step("false")

        rule = make_rule(register, name="Counted")()
        assert repr(rule) == "<Rule Counted (1 Workflow Rules; 0 Job Rules; 2 Step Rules)>"


class TestNearestKey:
    """Tests for nearest-key resolution of highlight paths."""

    @pytest.fixture
    def workflow(self, load):
        return load(WORKFLOW)

    def test_full_path(self, workflow):
        """A fully present path resolves to the deepest key."""
        job = workflow.jobs["build"]
        assert find_nearest_key(job.node, "container.image").line == 7

    def test_partial_path(self, workflow):
        """A path that runs out resolves to the last key found."""
        job = workflow.jobs["build"]
        assert find_nearest_key(job.node, "container.image.tag").line == 7
        assert find_nearest_key(job.node, "container.registry").line == 6

    def test_missing_first_segment(self, workflow):
        """Nothing is found when the first segment is absent."""
        job = workflow.jobs["test"]
        assert find_nearest_key(job.node, "container.image") is None

    def test_resolve_line_falls_back_to_target(self, workflow):
        """An unresolvable highlight reports the target's own line."""
        job = workflow.jobs["test"]
        assert resolve_line(job, "container.image") == job.line == 15

    def test_resolve_line_without_highlight(self, workflow):
        """No highlight means the target's line."""
        step = workflow.jobs["build"].steps[1]
        assert resolve_line(step, None) == 11
        assert resolve_line(workflow, None) == 0


class TestRuleEngine:
    """Tests for dispatch across scopes."""

    def test_scope_order_and_context(self):
        """Workflow, then each job, then its steps, in document order."""
        seen = []

        def register(hooks):
            hooks.on_workflow(lambda workflow, job, step: seen.append(("workflow", job, step)))
            hooks.on_job(lambda workflow, job, step: seen.append(("job", job.name, step)))
            hooks.on_step(lambda workflow, job, step: seen.append(("step", job.name, step.index)))

        engine = RuleEngine([make_rule(register)()])
        engine.analyze("workflow.yml", WORKFLOW)

        assert seen == [
            ("workflow", None, None),
            ("job", "build", None),
            ("step", "build", 0),
            ("step", "build", 1),
            ("job", "test", None),
            ("step", "test", 0),
        ]

    def test_rules_interleave_per_scope(self):
        """Every rule runs at a scope before the engine moves to the next one."""
        seen = []

        def recorder(label):
            def register(hooks):
                hooks.on_workflow(lambda workflow, job, step: seen.append((label, "workflow")))
                hooks.on_job(lambda workflow, job, step: seen.append((label, job.name)))
                hooks.on_step(
                    lambda workflow, job, step: seen.append((label, f"{job.name}[{step.index}]"))
                )

            return make_rule(register, name=label)()

        RuleEngine([recorder("A"), recorder("B")]).analyze("ci.yml", WORKFLOW)

        assert seen == [
            ("A", "workflow"),
            ("B", "workflow"),
            ("A", "build"),
            ("B", "build"),
            ("A", "build[0]"),
            ("B", "build[0]"),
            ("A", "build[1]"),
            ("B", "build[1]"),
            ("A", "test"),
            ("B", "test"),
            ("A", "test[0]"),
            ("B", "test[0]"),
        ]

    def test_declarative_violation_attribution(self):
        """The engine fills in file, rule name, description and line."""
        rule_class = make_rule(
            lambda hooks: hooks.on_job('$job.runs_on == "ubuntu-latest"', highlight="runs_on"),
            name="Runner",
        )
        violations = RuleEngine([rule_class()]).analyze("ci.yml", WORKFLOW)

        assert [(v.file, v.rule_name, v.line) for v in violations] == [
            ("ci.yml", "Runner", 5),
            ("ci.yml", "Runner", 16),
        ]
        assert violations[0].description == "probe description"
        assert violations[0].snippet is not None

    def test_innermost_target(self):
        """Step hooks report against the step, not the job."""
        rule_class = make_rule(lambda hooks: hooks.on_step('$step.name == "second"'))
        violations = RuleEngine([rule_class()]).analyze("ci.yml", WORKFLOW)
        assert [v.line for v in violations] == [11]

    def test_highlight_fallback(self):
        """A highlight missing from the target falls back to the target line."""
        rule_class = make_rule(lambda hooks: hooks.on_step("true", highlight="with.ref"))
        violations = RuleEngine([rule_class()]).analyze("ci.yml", WORKFLOW)
        assert [v.line for v in violations] == [9, 14, 18]

    def test_data_is_visible(self):
        """Rule data is available as $data."""
        rule_class = make_rule(
            lambda hooks: hooks.on_job("contains($data.runners, $job.runs_on)"),
            data={"runners": ["ubuntu-latest"]},
        )
        violations = RuleEngine([rule_class()]).analyze("ci.yml", WORKFLOW)
        assert len(violations) == 2

    def test_dynamic_hook_attribution(self):
        """Dynamic violations get file and rule name from the engine."""
        def check(workflow, job, step):
            if step.run == "echo three":
                return Violation(line=step.line, description="dynamic", rule_name="Spoofed")
            return None

        rule_class = make_rule(lambda hooks: hooks.on_step(check), name="Dynamic")
        violations = RuleEngine([rule_class()]).analyze("ci.yml", WORKFLOW)

        assert len(violations) == 1
        assert violations[0].rule_name == "Dynamic"
        assert violations[0].file == "ci.yml"
        assert violations[0].description == "dynamic"
        assert violations[0].line == 18

    def test_suppression(self):
        """Ignore comments above the flagged line drop the violation."""
        text = dedent("""\
            name: CI
            on: push
            # ignore: Perms
            permissions: write-all
            jobs: {}
        """)
        rule_class = make_rule(
            lambda hooks: hooks.on_workflow("$workflow.permissions.write_all", highlight="permissions"),
            name="Perms",
        )
        assert RuleEngine([rule_class()]).analyze("ci.yml", text) == []

    def test_parse_error_propagates(self):
        """Malformed documents raise ParseError."""
        engine = RuleEngine([])
        with pytest.raises(ParseError):
            engine.analyze("ci.yml", "jobs: [unterminated\n")

    def test_no_rules(self):
        """An engine without rules finds nothing."""
        assert RuleEngine([]).analyze("ci.yml", WORKFLOW) == []


class TestTracing:
    """Tests for expression tracing."""

    def test_debug_hook_is_traced(self):
        """Hooks registered with debug=True emit trace records."""
        records = []
        rule_class = make_rule(
            lambda hooks: hooks.on_workflow("$workflow.name == null", debug=True), name="Traced"
        )
        RuleEngine([rule_class()], tracer=records.append).analyze("ci.yml", WORKFLOW)

        assert len(records) == 1
        record = records[0]
        assert record.rule_name == "Traced"
        assert record.scope is HookScope.WORKFLOW
        assert record.expression == "$workflow.name == null"
        assert record.result is False
        assert set(record.context) == {"data", "workflow", "job", "step"}

    def test_untraced_by_default(self):
        """Without debug or trace nothing is recorded."""
        records = []
        rule_class = make_rule(lambda hooks: hooks.on_job("true"))
        RuleEngine([rule_class()], tracer=records.append).analyze("ci.yml", WORKFLOW)
        assert records == []

    def test_global_trace(self):
        """trace=True records every declarative hook evaluation."""
        records = []
        rule_class = make_rule(lambda hooks: hooks.on_job("true"))
        RuleEngine([rule_class()], tracer=records.append, trace=True).analyze("ci.yml", WORKFLOW)
        assert [record.scope for record in records] == [HookScope.JOB, HookScope.JOB]

    def test_default_tracer_logs(self, caplog):
        """The default tracer logs at DEBUG."""
        rule_class = make_rule(lambda hooks: hooks.on_workflow("true", debug=True), name="Logged")
        with caplog.at_level("DEBUG", logger="claws.pipeline.rules.engine"):
            RuleEngine([rule_class()]).analyze("ci.yml", WORKFLOW)
        assert "[Logged] workflow hook true => True" in caplog.text


class TestEndToEnd:
    """Both permission rules over the same document."""

    TEMPLATE = dedent("""\
        name: Deploy

        on:
          push:
            branches:
            - main

        {permissions}
    """)

    @pytest.fixture
    def engine(self):
        return RuleEngine([BulkPermissions(), SpecialPermissions()])

    def test_bulk_grant(self, engine):
        """write-all is a bulk finding only."""
        text = self.TEMPLATE.format(permissions="permissions: write-all")
        violations = engine.analyze("deploy.yml", text)
        assert [(v.rule_name, v.line) for v in violations] == [("BulkPermissions", 8)]

    def test_scoped_grant(self, engine):
        """A sensitive scoped write is a special-permissions finding only."""
        text = self.TEMPLATE.format(permissions="permissions:\n  packages: write")
        violations = engine.analyze("deploy.yml", text)
        assert [(v.rule_name, v.line) for v in violations] == [("SpecialPermissions", 8)]

    def test_findings_follow_scope_order(self):
        """Workflow findings from any rule come before job findings."""
        text = dedent("""\
            on: push
            jobs:
              build:
                runs-on: windows-latest
                steps:
                  - run: echo hi
        """)
        engine = RuleEngine([UnapprovedRunners(), EmptyName()])
        violations = engine.analyze("ci.yml", text)
        assert [(v.rule_name, v.line) for v in violations] == [
            ("EmptyName", 0),
            ("UnapprovedRunners", 4),
        ]
