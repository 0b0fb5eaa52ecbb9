from claws.pipeline.rules.models import HookBuilder, Rule


class CommandInjection(Rule):
    """Flags ``run`` scripts that interpolate event payloads or workflow inputs."""

    description = (
        "This step executes commands with user input which may allow an attacker to execute "
        "code in the context of this step, exposing source code or credentials. Consider "
        "moving user input into an environment variable instead of directly placing it into "
        "the shell command.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#commandinjection"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_step(
            '$step.run =~ ".*{{[ ]+.*(github.event|inputs).*}}.*"',
            highlight="run",
        )
