"""Tests for the CommandInjection rule."""

from claws.rules import CommandInjection


class TestCommandInjection:
    """Tests for interpolating user input into run scripts."""

    def test_flags_interpolated_event_input(self, analyze):
        """Event payloads interpolated into run are flagged at the run key."""
        violations = analyze(CommandInjection, """\
            name: Greeting

            on:
              workflow_dispatch:
                inputs:
                  name:
                    description: 'Who I should say hello to?'
                    required: true

            jobs:
              greet:
                runs-on: ubuntu-latest
                steps:
                  - name: Checkout
                    uses: actions/checkout@v1
                  - name: Greet
                    run: ./scripts/greet.sh "${{ github.event.inputs.name }}"
        """)

        assert len(violations) == 1
        assert violations[0].line == 17
        assert violations[0].rule_name == "CommandInjection"

    def test_flags_workflow_inputs(self, analyze):
        """Workflow inputs are user input too."""
        violations = analyze(CommandInjection, """\
            name: Greeting
            on: workflow_call
            jobs:
              greet:
                steps:
                  - run: echo "${{ inputs.name }}"
        """)

        assert len(violations) == 1

    def test_ignores_environment_variables(self, analyze):
        """Passing input through env is safe."""
        violations = analyze(CommandInjection, """\
            name: Greeting

            on:
              workflow_dispatch:
                inputs:
                  name:
                    description: 'Who I should say hello to?'
                    required: true

            jobs:
              greet:
                runs-on: ubuntu-latest
                steps:
                  - name: Checkout
                    uses: actions/checkout@v1
                  - name: Greet
                    run: ./scripts/greet.sh "$NAME"
                    env:
                      NAME: ${{ github.event.inputs.name }}
        """)

        assert violations == []
