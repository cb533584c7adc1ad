"""Interactive CLI application."""
import argparse

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from phrase_tutor import session as learn
from phrase_tutor.config import DEFAULT_CONFIG_PATH, LearnConfig, config_from_dict, configure_logging, load_config
from phrase_tutor.diff import diff_card
from phrase_tutor.errors import TutorError
from phrase_tutor.manifest import SAMPLE_PHRASES_PATH, load_phrases
from phrase_tutor.models import AnswerMode, Direction, SessionPhase
from phrase_tutor.remote import RemoteCorroborator
from phrase_tutor.word_bank import available_tokens

console = Console()

EXIT_COMMANDS = {"q", "quit", "menu"}
SKIP_COMMANDS = {"/s", "/skip"}
UNDO_COMMANDS = {"u", "undo"}
CHECK_COMMANDS = {"c", "check"}


class SessionExitRequested(Exception):
    """Raised when the learner leaves a session from any prompt."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_COMMANDS:
        raise SessionExitRequested()
    return answer


def show_welcome(phrase_count: int, config: LearnConfig):
    direction = "source → target" if config.direction == Direction.SOURCE_TO_TARGET else "target → source"
    console.print(Panel(
        f"[bold]Phrase Tutor[/bold]\n[dim]{phrase_count} phrases · {direction} · "
        f"{config.answer_mode.value.replace('_', ' ')} mode[/dim]",
        title="Learn", border_style="blue",
    ))
    console.print("[dim]Type 'q' at any prompt to leave, '/skip' to skip a card.[/dim]\n")


def render_segments(segments, highlight: str) -> Text:
    text = Text()
    for segment in segments:
        if segment.type == "equal":
            text.append(segment.text)
        else:
            text.append(segment.text, style=highlight)
    return text


def show_feedback(card):
    if card.is_correct:
        console.print("[green]Correct![/green]")
    else:
        console.print("[red]Incorrect.[/red]")
    user_segments, correct_segments = diff_card(card)
    user_text = render_segments(user_segments, "bold red") if card.user_answer else Text("empty", style="dim italic")
    console.print(Text("  Your answer:    ").append_text(user_text))
    console.print(Text("  Correct answer: ").append_text(render_segments(correct_segments, "bold green")))
    console.print()


def show_card(session: learn.Session):
    phrase = learn.current_phrase(session)
    title = f"Round {session.round_number} · Card {session.current_index + 1}/{len(session.current_round)}"
    subtitle = "audio available" if phrase.has_prompt_audio(session.direction) else None
    console.print(Panel(learn.prompt_text(session), title=title, subtitle=subtitle, border_style="cyan"))


def show_round_summary(summary):
    table = Table(title=f"Round {summary.round_number} summary")
    table.add_column("Correct", justify="right", style="green")
    table.add_column("To repeat", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="dim")
    table.add_column("Total", justify="right")
    table.add_row(
        str(summary.correct_count), str(summary.incorrect_count),
        str(summary.skipped_count), str(summary.total),
    )
    console.print(table)
    console.print(f"[bold]Score: {summary.correct_count}/{summary.total}[/bold]\n")


def answer_typed_card(session: learn.Session) -> learn.Session:
    phrase = learn.current_phrase(session)
    answer = session_prompt("Your answer", default="", show_default=False)
    if answer.strip().lower() in SKIP_COMMANDS:
        return learn.skip(session)
    return learn.check(learn.set_answer(session, phrase.id, answer))


def answer_word_bank_card(session: learn.Session) -> learn.Session:
    result = learn.current_result(session)
    selected = list(result.selected_tokens) if result else []
    available = available_tokens(learn.current_pool(session), selected)
    console.print(Text("  Your answer: ").append(" ".join(selected) or "…", style="bold"))
    pool_text = Text("  Word pool:   ")
    for i, token in enumerate(available, 1):
        pool_text.append(f"{i}) ", style="cyan").append(f"{token}  ")
    console.print(pool_text)
    choice = session_prompt("Pick a number ('u' to undo, 'c' to check)").strip().lower()
    if choice in SKIP_COMMANDS:
        return learn.skip(session)
    if choice in UNDO_COMMANDS:
        return learn.remove_token(session, len(selected) - 1)
    if choice in CHECK_COMMANDS:
        return learn.check(session)
    if choice.isdigit() and 1 <= int(choice) <= len(available):
        return learn.select_token(session, available[int(choice) - 1])
    console.print("[red]Unknown choice. Try again.[/red]")
    return session


def run_card(session: learn.Session, corroborator: RemoteCorroborator | None = None) -> learn.Session:
    """Run the current card until it is checked or skipped, then advance.

    The local result is shown right away. With a corroborator the same answer
    is also sent to the remote service in the background.
    """
    show_card(session)
    phrase = learn.current_phrase(session)
    word_bank = learn.card_mode(session) == AnswerMode.WORD_BANK
    while learn.current_phrase(session) is phrase and not learn.is_current_checked(session):
        if word_bank:
            session = answer_word_bank_card(session)
        else:
            session = answer_typed_card(session)
    if learn.current_phrase(session) is not phrase:
        return session
    if corroborator is not None:
        corroborator.submit(session, phrase.id)
    show_feedback(learn.current_result(session))
    session_prompt("[dim]Press Enter to continue[/dim]", default="", show_default=False)
    return learn.confirm(session)


def run_rounds(session: learn.Session, corroborator: RemoteCorroborator | None = None) -> learn.Session:
    try:
        while session.phase != SessionPhase.IDLE:
            if session.phase == SessionPhase.IN_PROGRESS:
                session = run_card(session, corroborator)
                continue
            show_round_summary(learn.round_summary(session))
            if not session.incorrect_phrases:
                console.print("[green]Nothing left to repeat. Well done![/green]")
                session = learn.finish(session)
                continue
            choice = session_prompt("Next", choices=["repeat", "finish"], default="repeat")
            if choice == "repeat":
                session = learn.continue_with_incorrect(session)
            else:
                session = learn.finish(session)
    except SessionExitRequested:
        console.print("[dim]Session abandoned.[/dim]")
        return learn.restart(session)
    return session


def run_learn_session(phrases, config: LearnConfig) -> learn.Session:
    session = learn.new_session(config.direction, config.shuffle, config.answer_mode)
    session = learn.start(session, phrases)
    if session.phase == SessionPhase.IDLE:
        console.print(f"[yellow]{session.notice}[/yellow]")
        return session
    if not config.remote_url:
        return run_rounds(session)
    with RemoteCorroborator(config.remote_url, config.remote_timeout) as corroborator:
        return run_rounds(session, corroborator)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="phrase-tutor", description="Practice bilingual phrases.")
    parser.add_argument("phrases_file", nargs="?", default=str(SAMPLE_PHRASES_PATH))
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH)
    parser.add_argument("--direction", choices=[d.value for d in Direction])
    parser.add_argument("--mode", dest="answer_mode", choices=[m.value for m in AnswerMode])
    parser.add_argument("--no-shuffle", dest="shuffle", action="store_false", default=None)
    parser.add_argument("--difficulty", choices=["easy", "medium", "hard", "unset"])
    parser.add_argument("--remote", dest="remote_url")
    parser.add_argument("--serve", action="store_true", help="serve the check-answer API instead")
    parser.add_argument("--port", type=int)
    parser.add_argument("--log-level", dest="log_level")
    return parser


def resolve_config(args: argparse.Namespace) -> LearnConfig:
    overrides = {
        key: getattr(args, key)
        for key in ("direction", "answer_mode", "shuffle", "difficulty", "remote_url", "port", "log_level")
        if getattr(args, key) is not None
    }
    return config_from_dict(overrides, base=load_config(args.config))


def serve(phrases, config: LearnConfig):
    import uvicorn
    from phrase_tutor.api import create_app

    console.print(f"[dim]Serving {len(phrases)} phrases on http://{config.host}:{config.port}[/dim]")
    uvicorn.run(create_app(phrases), host=config.host, port=config.port, log_level=config.log_level.lower())


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        config = resolve_config(args)
        configure_logging(config.log_level)
        phrases = load_phrases(args.phrases_file, config.difficulty)
    except TutorError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if args.serve:
        serve(phrases, config)
        return 0

    show_welcome(len(phrases), config)
    try:
        while True:
            run_learn_session(phrases, config)
            again = Prompt.ask("\nStart again?", choices=["y", "n"], default="n")
            if again != "y":
                console.print("[dim]See you next time![/dim]")
                break
    except KeyboardInterrupt:
        console.print("\n[dim]Bye.[/dim]")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
