"""
Manual review of ambiguous name matches.

The draft resolver only talks to the ``Resolver`` interface, so the console
prompts can be swapped for scripted answers in tests and unattended runs.
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional

from .matching_engine import NameMatcher
from .name_processing import Candidate, ParsedName, format_candidate

MAX_PROMPT_ATTEMPTS = 25


class ResolutionAborted(Exception):
    """Raised when the operator gives up or input runs out mid-resolution."""


class Resolver(ABC):
    """Interface for turning ambiguous matches into a single user id."""

    @abstractmethod
    def choose_user(self, description: str, candidates: List[Candidate], matcher: NameMatcher) -> str:
        """Return the id of the user the operator picked."""

    @abstractmethod
    def choose_captain(self, captain_last_name: str, options: List[ParsedName]) -> int:
        """Return the 0-based index of the option that is the captain."""

    @abstractmethod
    def confirm(self, prompt: str, default: bool = True) -> bool:
        """Ask a yes/no question."""


class ConsoleResolver(Resolver):
    """
    Interactive resolver that prompts on the terminal.
    """

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        max_attempts: int = MAX_PROMPT_ATTEMPTS
    ):
        """
        Initialize the console resolver.

        Args:
            input_func: Function used to read an answer (defaults to input)
            max_attempts: Invalid answers tolerated per question before giving up
        """
        self.input_func = input_func
        self.max_attempts = max_attempts

    def _ask(self, prompt: str) -> str:
        try:
            return self.input_func(prompt).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nOperation cancelled by user")
            raise ResolutionAborted("Operator input ended") from None

    def _select_user(self, user_id: str, matcher: NameMatcher) -> Optional[str]:
        user = matcher.get_user(user_id)
        if user is None:
            print(f"  ! User ID \"{user_id}\" not found in database")
            return None
        print(f"  -> Selected: {user.first_name} {user.last_name}")
        return user.id

    def choose_user(self, description: str, candidates: List[Candidate], matcher: NameMatcher) -> str:
        """
        Present candidates and read the operator's choice.

        Accepts a list number, 0 followed by a user id, or a user id typed
        directly. Unknown ids and out-of-range numbers re-prompt.

        Args:
            description: What is being resolved
            candidates: Possible matches (may be empty)
            matcher: Roster lookup used to validate typed ids

        Returns:
            The chosen user id
        """
        print(f"\n{description}")

        for _ in range(self.max_attempts):
            if not candidates:
                selected = self._select_user(self._ask("Enter user ID: "), matcher)
                if selected:
                    return selected
                continue

            print("Possible matches:")
            for idx, candidate in enumerate(candidates, 1):
                print(f"  {idx}. {format_candidate(candidate)}")
            print("  0. None of these (enter ID manually)")

            choice = self._ask("Enter choice (number or user ID): ")

            # List numbers take precedence over numeric user ids
            if choice.isdecimal():
                num = int(choice)
                if 1 <= num <= len(candidates):
                    return candidates[num - 1].id
                if num == 0:
                    choice = self._ask("Enter user ID: ")
                elif choice not in matcher:
                    print(f"Invalid choice. Please enter 0-{len(candidates)} or a user ID")
                    continue

            selected = self._select_user(choice, matcher)
            if selected:
                return selected

        raise ResolutionAborted(f"No valid answer after {self.max_attempts} attempts: {description}")

    def choose_captain(self, captain_last_name: str, options: List[ParsedName]) -> int:
        """
        Ask which of several same-last-name players is the captain.

        Returns:
            0-based index into options
        """
        print(f"Multiple players with last name \"{captain_last_name}\":")
        for idx, name in enumerate(options, 1):
            print(f"  {idx}. {name.original}")

        for _ in range(self.max_attempts):
            choice = self._ask("Which one is the captain? (enter number): ")
            if choice.isdecimal() and 1 <= int(choice) <= len(options):
                return int(choice) - 1
            print(f"Invalid choice. Please enter 1-{len(options)}")

        raise ResolutionAborted(f"No captain chosen for \"{captain_last_name}\"")

    def confirm(self, prompt: str, default: bool = True) -> bool:
        """
        Ask a yes/no question.

        With default=True only 'n'/'no' declines; with default=False only
        'y'/'yes' accepts.
        """
        answer = self._ask(prompt).lower()
        if default:
            return answer not in ('n', 'no')
        return answer in ('y', 'yes')


class ScriptedResolver(ConsoleResolver):
    """
    Resolver that replays a fixed list of answers.

    Answers go through the same validation as console input. Running out of
    answers aborts the resolution.
    """

    def __init__(self, answers: Iterable[str], max_attempts: int = MAX_PROMPT_ATTEMPTS):
        self.answers = list(answers)
        self.prompts: List[str] = []
        super().__init__(input_func=self._next_answer, max_attempts=max_attempts)

    def _next_answer(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)
