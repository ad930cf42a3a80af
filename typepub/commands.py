"""Command pattern implementation for trainer actions."""

from abc import ABC, abstractmethod
from typing import Dict, Tuple, Optional, TYPE_CHECKING
from .constants import TypingConstants
from .keyboard import KeyType

if TYPE_CHECKING:
    from .trainer import Trainer
    from .keyboard import KeyEvent


class TrainerCommand(ABC):
    """Base class for trainer commands."""

    @abstractmethod
    def execute(self, trainer: 'Trainer', key_event: 'KeyEvent') -> bool:
        """Execute the command.

        Args:
            trainer: Trainer instance
            key_event: The key event that triggered this command

        Returns:
            True if the command changed the typing state
        """
        pass


class TypingCommand(TrainerCommand):
    """Base class for commands that feed the match engine."""

    def execute(self, trainer: 'Trainer', key_event: 'KeyEvent') -> bool:
        self._type(trainer, key_event)
        return True

    @abstractmethod
    def _type(self, trainer: 'Trainer', key_event: 'KeyEvent'):
        """Apply the keystroke."""
        pass


class TypeCharCommand(TypingCommand):
    def _type(self, trainer, key_event):
        char = key_event.value
        # Only printable single characters are typed
        if len(char) == 1 and char.isprintable():
            trainer.type_char(char)


class AdvanceCommand(TypingCommand):
    def _type(self, trainer, key_event):
        trainer.type_char(TypingConstants.ADVANCE_KEY)


class BackspaceCommand(TypingCommand):
    def _type(self, trainer, key_event):
        trainer.backspace()


class DeleteWordCommand(TypingCommand):
    def _type(self, trainer, key_event):
        trainer.delete_word()


class RestartChapterCommand(TypingCommand):
    def _type(self, trainer, key_event):
        trainer.restart_chapter()


class NavigationCommand(TrainerCommand):
    """Base class for commands that replace the current document."""

    def execute(self, trainer: 'Trainer', key_event: 'KeyEvent') -> bool:
        self._navigate(trainer, key_event)
        return True

    @abstractmethod
    def _navigate(self, trainer: 'Trainer', key_event: 'KeyEvent'):
        pass


class NextChapterCommand(NavigationCommand):
    def _navigate(self, trainer, key_event):
        trainer.change_chapter(+1)


class PrevChapterCommand(NavigationCommand):
    def _navigate(self, trainer, key_event):
        trainer.change_chapter(-1)


class WiderCommand(NavigationCommand):
    def _navigate(self, trainer, key_event):
        trainer.change_width(TypingConstants.WIDTH_STEP)


class NarrowerCommand(NavigationCommand):
    def _navigate(self, trainer, key_event):
        trainer.change_width(-TypingConstants.WIDTH_STEP)


class SystemCommand(TrainerCommand):
    """Base class for system commands like quit and help."""

    def execute(self, trainer: 'Trainer', key_event: 'KeyEvent') -> bool:
        self._execute_system(trainer, key_event)
        return False

    @abstractmethod
    def _execute_system(self, trainer: 'Trainer', key_event: 'KeyEvent'):
        pass


class QuitCommand(SystemCommand):
    def _execute_system(self, trainer, key_event):
        trainer.running = False


class HelpCommand(SystemCommand):
    def _execute_system(self, trainer, key_event):
        trainer.show_help()


class CommandRegistry:
    """Registry for mapping key combinations to commands."""

    def __init__(self):
        self._commands: Dict[Tuple[KeyType, str], TrainerCommand] = {}
        self._setup_default_commands()

    def _setup_default_commands(self):
        """Set up the default command mappings."""
        # Typing
        self.register((KeyType.SPECIAL, 'enter'), AdvanceCommand())
        self.register((KeyType.SPECIAL, 'backspace'), BackspaceCommand())
        self.register((KeyType.CTRL, 'w'), DeleteWordCommand())
        self.register((KeyType.CTRL, 'h'), BackspaceCommand())  # Backspace on terminals that send ^H
        self.register((KeyType.CTRL, 'backspace'), DeleteWordCommand())
        self.register((KeyType.ALT, 'backspace'), DeleteWordCommand())
        self.register((KeyType.CTRL, 'r'), RestartChapterCommand())

        # Chapters
        self.register((KeyType.SPECIAL, 'page_down'), NextChapterCommand())
        self.register((KeyType.SPECIAL, 'page_up'), PrevChapterCommand())
        self.register((KeyType.CTRL, 'n'), NextChapterCommand())
        self.register((KeyType.CTRL, 'p'), PrevChapterCommand())

        # Layout
        self.register((KeyType.ALT, '='), WiderCommand())
        self.register((KeyType.ALT, '+'), WiderCommand())
        self.register((KeyType.ALT, '-'), NarrowerCommand())

        # System commands
        self.register((KeyType.CTRL, 'q'), QuitCommand())
        self.register((KeyType.SPECIAL, 'escape'), QuitCommand())
        self.register((KeyType.SPECIAL, 'f1'), HelpCommand())

    def register(self, key: Tuple[KeyType, str], command: TrainerCommand):
        """Register a command for a key combination."""
        self._commands[key] = command

    def get_command(self, key_type: KeyType, value: str) -> Optional[TrainerCommand]:
        """Get the command for a key combination."""
        return self._commands.get((key_type, value))

    def execute(self, trainer: 'Trainer', key_event: 'KeyEvent') -> bool:
        """Execute the command for the given key event.

        Returns:
            True if the typing state changed
        """
        command = self.get_command(key_event.key_type, key_event.value)
        if command:
            return command.execute(trainer, key_event)

        # Anything else that is a plain character gets typed
        if key_event.key_type == KeyType.REGULAR:
            return TypeCharCommand().execute(trainer, key_event)

        return False
