"""Interactive CLI application."""
import logging
from datetime import datetime

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt, IntPrompt, FloatPrompt, Confirm

from roadmap_tracker.config import DEFAULT_CACHE_PATH, DEFAULT_DB_PATH, LOG_DIR, LOG_LEVEL, POOL_FLOOR
from roadmap_tracker.events import ACHIEVEMENT_UNLOCKED, ACHIEVEMENTS_UNLOCKED
from roadmap_tracker.logger import setup_logger
from roadmap_tracker.models import PROJECT_STATUSES, Achievement, DailyLog
from roadmap_tracker.rules import MANUAL_ACHIEVEMENT_IDS
from roadmap_tracker.session import RoadmapSession
from roadmap_tracker.store import CacheStore, SqliteStore
from roadmap_tracker.unlock import can_mark_complete

console = Console()
logger = logging.getLogger(__name__)


def build_session(db_path: str, cache_path: str, pool_floor: int = POOL_FLOOR) -> RoadmapSession:
    session = RoadmapSession(SqliteStore(db_path), cache=CacheStore(cache_path), pool_floor=pool_floor)
    session.bus.subscribe(ACHIEVEMENT_UNLOCKED, show_unlock)
    session.bus.subscribe(ACHIEVEMENTS_UNLOCKED, show_batch_unlock)
    return session


def show_unlock(achievement: Achievement) -> None:
    console.print(Panel(
        f"{achievement.icon} [bold]{achievement.title}[/bold]\n"
        f"[dim]{achievement.description}[/dim]\n[green]+{achievement.points} points[/green]",
        title="Achievement Unlocked", border_style="yellow",
    ))


def show_batch_unlock(achievements: list[Achievement]) -> None:
    total = sum(a.points for a in achievements)
    console.print(f"[bold yellow]{len(achievements)} achievements unlocked! (+{total} points)[/bold yellow]")


def show_error(session: RoadmapSession) -> bool:
    if session.last_error:
        console.print(f"[red]{session.last_error}[/red]")
        return True
    return False


def get_progress_color(progress: float) -> str:
    if progress >= 100:
        return "green"
    elif progress > 0:
        return "yellow"
    return "dim"


def show_welcome(session: RoadmapSession):
    level = session.level
    console.print(Panel(
        f"[bold]Developer Roadmap[/bold]\n[dim]{level.icon} {level.name} · "
        f"{session.metrics.total_points} points[/dim]",
        title="Welcome", border_style="blue",
    ))
    if session.offline:
        console.print("[yellow]Working offline from cached data. Changes stay in the local cache.[/yellow]")


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("dashboard", "Level, streaks and phase progress"),
        ("log", "Log today's study"),
        ("focus", "Run a focus session"),
        ("topics", "Mark topics complete"),
        ("projects", "Update, add or delete projects"),
        ("achievements", "Available and unlocked achievements"),
        ("complete", "Mark an achievement complete"),
        ("generate", "Add a new achievement to the pool"),
        ("reset", "Reset all achievements"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def choose_phase(session: RoadmapSession):
    phases = session.phases
    if not phases:
        console.print("[yellow]No phases to choose from.[/yellow]")
        return None
    for i, phase in enumerate(phases, 1):
        console.print(f"  [cyan]{i}.[/cyan] {phase.title} [dim]({phase.progress:.0f}%)[/dim]")
    index = IntPrompt.ask("Phase", choices=[str(i) for i in range(1, len(phases) + 1)], default=1)
    return phases[index - 1]


def cmd_dashboard(session: RoadmapSession):
    m = session.metrics
    level = session.level
    nxt = session.next_level
    header = f"{level.icon} {level.name} · {m.total_points} points"
    if nxt:
        header += f" · {m.points_to_next_level} to {nxt.name}"
    console.print(Panel(f"[bold]{header}[/bold]", title="Roadmap Dashboard", border_style="blue"))

    console.print(f"\n  Streak: [bold]{m.current_streak}[/bold] days (best {m.longest_streak})  |  "
                  f"Hours: [bold]{m.total_hours:.1f}[/bold]  |  "
                  f"Problems: [bold]{m.total_problems_solved}[/bold]  |  "
                  f"Achievements: [bold]{m.total_achievements_unlocked}[/bold]\n")

    table = Table(title="Phases")
    table.add_column("Phase", style="cyan")
    table.add_column("Topics", justify="right")
    table.add_column("Projects", justify="right")
    table.add_column("Progress", justify="right")
    for phase in session.phases:
        color = get_progress_color(phase.progress)
        bar_filled = int(phase.progress / 5)
        bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
        table.add_row(
            phase.title,
            f"{sum(1 for t in phase.topics if t.completed)}/{len(phase.topics)}",
            f"{sum(1 for p in phase.projects if p.status == 'completed')}/{len(phase.projects)}",
            f"{bar} {phase.progress:.0f}%",
        )
    console.print(table)

    if m.current_streak == 0 and m.last_activity_date:
        console.print(f"\n  [yellow]Last activity {m.last_activity_date}. Log today to restart your streak.[/yellow]")


def cmd_log(session: RoadmapSession):
    phase = choose_phase(session)
    if phase is None:
        return
    hours = FloatPrompt.ask("Hours spent", default=1.0)
    problems = IntPrompt.ask("LeetCode problems solved", default=0)
    activities = Prompt.ask("What did you work on? (separate with ;)", default="")
    takeaway = Prompt.ask("Key takeaway", default="")
    entry = DailyLog(
        date=session.today,
        phase_id=phase.id,
        hours_spent=hours,
        leetcode_problems=problems,
        activities=[a.strip() for a in activities.split(";") if a.strip()],
        key_takeaway=takeaway,
    )
    if session.add_daily_log(entry) is not None:
        console.print(f"[green]Logged {hours:g}h on {phase.title}.[/green]")
    show_error(session)


def cmd_focus(session: RoadmapSession):
    started_at = datetime.now()
    console.print(f"[bold]Focus session started at {started_at:%H:%M}.[/bold]")
    answer = Prompt.ask("Press Enter when finished, or type 'abandon'", default="")
    if answer.strip().lower() == "abandon":
        console.print("[dim]Session abandoned, nothing logged.[/dim]")
        return
    entry = session.complete_focus_session(started_at)
    if entry is not None:
        console.print(f"[green]Logged {entry.hours_spent:g}h: {entry.activities[0]}[/green]")
    show_error(session)


def cmd_topics(session: RoadmapSession):
    phase = choose_phase(session)
    if phase is None:
        return
    if not phase.topics:
        console.print("[yellow]This phase has no topics.[/yellow]")
        return
    for i, topic in enumerate(phase.topics, 1):
        mark = "[green]✓[/green]" if topic.completed else " "
        console.print(f"  {mark} [cyan]{i}.[/cyan] {topic.name}")
    index = IntPrompt.ask("Toggle topic", choices=[str(i) for i in range(1, len(phase.topics) + 1)])
    topic = phase.topics[index - 1]
    updated = session.set_topic_completed(topic.id, not topic.completed)
    if updated is not None:
        console.print(f"[green]{topic.name}: {'done' if not topic.completed else 'reopened'}. "
                      f"{updated.title} is at {updated.progress:.0f}%.[/green]")
    show_error(session)


def cmd_projects(session: RoadmapSession):
    phase = choose_phase(session)
    if phase is None:
        return
    for i, project in enumerate(phase.projects, 1):
        custom = " [dim](custom)[/dim]" if project.is_custom else ""
        console.print(f"  [cyan]{i}.[/cyan] {project.name}{custom} [dim]{project.status}[/dim]")
    custom_choices = [str(i) for i, p in enumerate(phase.projects, 1) if p.is_custom]
    choices = [str(i) for i in range(1, len(phase.projects) + 1)] + ["add"]
    if custom_choices:
        choices.append("delete")
    choice = Prompt.ask("Project number, 'add' or 'delete'" if custom_choices else "Project number, or 'add'",
                        choices=choices)
    if choice == "delete":
        project = phase.projects[int(Prompt.ask("Delete which custom project", choices=custom_choices)) - 1]
        if not Confirm.ask(f"Delete {project.name}?", default=False):
            return
        updated = session.delete_project(project.id)
    elif choice == "add":
        name = Prompt.ask("Project name")
        description = Prompt.ask("Description", default="")
        technologies = Prompt.ask("Technologies (comma separated)", default="")
        updated = session.add_project(
            phase.id, name, description,
            [t.strip() for t in technologies.split(",") if t.strip()],
        )
    else:
        project = phase.projects[int(choice) - 1]
        status = Prompt.ask("Status", choices=list(PROJECT_STATUSES), default=project.status)
        updated = session.set_project_status(project.id, status)
    if updated is not None:
        console.print(f"[green]{updated.title} is at {updated.progress:.0f}%.[/green]")
    show_error(session)


def cmd_achievements(session: RoadmapSession):
    table = Table(title=f"Available ({len(session.available_achievements)})")
    table.add_column("", width=2)
    table.add_column("Achievement", style="cyan")
    table.add_column("Requirement")
    table.add_column("Points", justify="right")
    for a in session.available_achievements:
        manual = " [dim](manual)[/dim]" if can_mark_complete(a) else ""
        table.add_row(a.icon, f"{a.title}{manual}", a.requirement, str(a.points))
    console.print(table)

    unlocked = session.unlocked_achievements
    table = Table(title=f"Unlocked ({len(unlocked)})")
    table.add_column("", width=2)
    table.add_column("Achievement", style="green")
    table.add_column("Date")
    table.add_column("Points", justify="right")
    for a in sorted(unlocked, key=lambda a: (a.unlocked_date or session.today, a.order)):
        table.add_row(a.icon, a.title, str(a.unlocked_date or ""), str(a.points))
    console.print(table)


def cmd_complete(session: RoadmapSession):
    candidates = [a for a in session.available_achievements if can_mark_complete(a)]
    if not candidates:
        console.print("[yellow]No achievements to mark complete.[/yellow]")
        return
    for i, a in enumerate(candidates, 1):
        kind = "social" if a.id in MANUAL_ACHIEVEMENT_IDS else "generated"
        console.print(f"  [cyan]{i}.[/cyan] {a.icon} {a.title} [dim]({kind}, {a.points} pts)[/dim]")
    index = IntPrompt.ask("Achievement", choices=[str(i) for i in range(1, len(candidates) + 1)])
    session.mark_complete(candidates[index - 1].id)
    show_error(session)


def cmd_generate(session: RoadmapSession):
    new = session.replenish_pool()
    if new is not None:
        console.print(f"[green]New achievement: {new.icon} {new.title} ({new.points} pts)[/green]")
    elif not show_error(session):
        console.print(f"[dim]{len(session.available_achievements)} achievements still available, "
                      f"nothing to add (floor is {session.pool_floor}).[/dim]")


def cmd_reset(session: RoadmapSession):
    if not Confirm.ask("[red]Reset all achievements? Unlocked progress and generated achievements are lost[/red]",
                       default=False):
        return
    if session.reset_achievements() is not None:
        console.print("[green]Achievements reset.[/green]")
    else:
        show_error(session)


COMMANDS = {
    "dashboard": cmd_dashboard,
    "log": cmd_log,
    "focus": cmd_focus,
    "topics": cmd_topics,
    "projects": cmd_projects,
    "achievements": cmd_achievements,
    "complete": cmd_complete,
    "generate": cmd_generate,
    "reset": cmd_reset,
}


def main():
    setup_logger(LOG_DIR, LOG_LEVEL)
    session = build_session(DEFAULT_DB_PATH, DEFAULT_CACHE_PATH)
    if not session.bootstrap():
        show_error(session)
        console.print("[yellow]Nothing can be saved this session.[/yellow]")

    show_welcome(session)

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="dashboard").strip().lower()
        try:
            if choice in ("quit", "exit", "q"):
                console.print("[dim]Keep the streak going![/dim]")
                break
            command = COMMANDS.get(choice)
            if command is None:
                console.print("[red]Unknown command. Try again.[/red]")
            else:
                command(session)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.exception("Command %s failed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
