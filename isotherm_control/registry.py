"""
CommandRegistry - Explicit command registration

Bounded Context: Command registration and validation
Responsibilities:
  - Register commands with handlers and parameter names
  - Validate command existence and required parameters before execution
  - Provide introspection (available_commands, get_help)

Threading: Thread-safe (lock for registration, snapshot reads)
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set, Tuple
import threading


class CommandNotAvailableError(Exception):
    """Raised when attempting to execute an unregistered command"""
    pass


class CommandParameterError(ValueError):
    """Raised when a command payload lacks a required parameter"""
    pass


@dataclass(frozen=True)
class _Command:
    handler: Callable[[dict], Any]
    description: str
    params: Tuple[str, ...]


class CommandRegistry:
    """
    Registry for control commands.

    Handlers receive the full command payload (dict). Required parameter
    names are checked before the handler runs.

    Example:
        registry = CommandRegistry()
        registry.register(
            'timeline_click', lambda data: engine.click(data['fraction']),
            "Click the timeline track", params=('fraction',),
        )

        try:
            registry.execute('timeline_click', {'command': 'timeline_click', 'fraction': 0.5})
        except CommandNotAvailableError as e:
            print(f"Command not available: {e}")
    """

    def __init__(self):
        self._commands: Dict[str, _Command] = {}
        self._lock = threading.Lock()

    def register(
        self,
        command: str,
        handler: Callable[[dict], Any],
        description: str,
        params: Tuple[str, ...] = (),
    ) -> None:
        """
        Register a command.

        Args:
            command: Command name (lowercase, no spaces)
            handler: Callable taking the command payload
            description: Human-readable description for help text
            params: Payload keys the command requires

        Raises:
            ValueError: If command already registered
        """
        with self._lock:
            if command in self._commands:
                raise ValueError(f"Command '{command}' already registered")
            self._commands[command] = _Command(handler, description, tuple(params))

    def execute(self, command: str, command_data: Optional[dict] = None) -> Any:
        """
        Execute a registered command and return the handler's result.

        Raises:
            CommandNotAvailableError: If command not registered
            CommandParameterError: If a required parameter is missing
        """
        entry = self._commands.get(command)
        if entry is None:
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {', '.join(sorted(self.available_commands))}"
            )

        data = command_data or {}
        missing = [p for p in entry.params if p not in data]
        if missing:
            raise CommandParameterError(
                f"Command '{command}' requires: {', '.join(missing)}"
            )

        return entry.handler(data)

    def is_available(self, command: str) -> bool:
        return command in self._commands

    @property
    def available_commands(self) -> Set[str]:
        """Snapshot of registered command names."""
        return set(self._commands.keys())

    def get_help(self) -> Dict[str, str]:
        """Command -> description (parameters appended)."""
        help_text = {}
        for name, entry in list(self._commands.items()):
            if entry.params:
                help_text[name] = f"{entry.description} (params: {', '.join(entry.params)})"
            else:
                help_text[name] = entry.description
        return help_text

    def count(self) -> int:
        return len(self._commands)
