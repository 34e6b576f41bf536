from types import MappingProxyType
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

Handler = Callable[..., Any]


@dataclass(frozen=True)
class CommandEntry:
    """A console command: its handler plus the text shown by help."""
    name: str
    handler: Handler
    description: str = ""
    usage: str = ""
    aliases: Tuple[str, ...] = field(default_factory=tuple)

    def normalized(self) -> "CommandEntry":
        """Returns a copy with the name and aliases case-folded."""
        return CommandEntry(
            name=self.name.casefold(),
            handler=self.handler,
            description=self.description or "",
            usage=self.usage or "",
            aliases=tuple(alias.casefold() for alias in self.aliases or ()),
        )


CommandDefinition = Union[CommandEntry, Mapping[str, Any]]


def _to_entry(definition: CommandDefinition, name: Optional[str] = None) -> Optional[CommandEntry]:
    if isinstance(definition, CommandEntry):
        entry = definition
    elif isinstance(definition, Mapping):
        entry_name = definition.get("name") or name
        if not entry_name or definition.get("handler") is None:
            return None
        entry = CommandEntry(
            name=entry_name,
            handler=definition["handler"],
            description=definition.get("description", ""),
            usage=definition.get("usage", ""),
            aliases=tuple(definition.get("aliases") or ()),
        )
    else:
        return None
    return entry.normalized()


def _collect(builtin_commands: Union[Iterable[CommandDefinition], Mapping[str, CommandDefinition], None]) -> Dict[str, CommandEntry]:
    commands: Dict[str, CommandEntry] = {}
    if not builtin_commands:
        return commands
    if isinstance(builtin_commands, Mapping):
        pairs = builtin_commands.items()
    else:
        pairs = ((None, definition) for definition in builtin_commands)
    for key, definition in pairs:
        entry = _to_entry(definition, key)
        if entry is not None:
            commands[entry.name] = entry
    return commands


def build_registry(
    builtin_commands: Union[Iterable[CommandDefinition], Mapping[str, CommandDefinition], None],
    console_commands: Iterable[CommandEntry] = (),
) -> Mapping[str, CommandEntry]:
    """
    Builds the read-only command table for a console session.

    :param builtin_commands: Command definitions, as CommandEntry objects or dicts with at
        least `name` and `handler`, either in a sequence or keyed by name.
    :param console_commands: Entries laid over the builtins; they win on a name clash.
        Defaults to the console's own `help` and `exit`.
    :return: A mapping of case-folded command names to entries.
    """
    if not console_commands:
        from agentvisor.local.console.handler import CONSOLE_COMMANDS
        console_commands = CONSOLE_COMMANDS

    commands = _collect(builtin_commands)
    for entry in console_commands:
        entry = entry.normalized()
        commands[entry.name] = entry
    return MappingProxyType(commands)


def resolve(token: str, registry: Mapping[str, CommandEntry]) -> Optional[str]:
    """
    Finds the command a token refers to, by name or alias, ignoring case.

    :return: The canonical command name, or None.
    """
    wanted = token.casefold()
    for name, entry in registry.items():
        if name == wanted or wanted in entry.aliases:
            return name
    return None
