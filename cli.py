import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typing import List, Optional
from datetime import datetime, date
import json

from macrobius_vocab import analytics
from macrobius_vocab.database import SessionLocal, init_db
from macrobius_vocab.crud import (
    create_learner, get_learner, get_learners,
    add_vocabulary_items, get_vocabulary_item, get_vocabulary_items
)
from macrobius_vocab.errors import VocabularyReviewError
from macrobius_vocab.logging_config import setup_logging
from macrobius_vocab.schemas import LearnerCreate, VocabularyItem
from macrobius_vocab.service import ReviewService
from macrobius_vocab.sm2 import PASSING_QUALITY, SM2Algorithm
from macrobius_vocab.storage import SqlReviewStore
from macrobius_vocab.vocabulary_parser import VocabularyParser

app = typer.Typer(help="Macrobius vocabulary trainer - SM-2 spaced repetition for Latin words")
console = Console()

QUALITY_LABELS = {
    0: "blackout",
    1: "wrong, recognised answer",
    2: "wrong, answer felt easy",
    3: "right, with serious effort",
    4: "right, after hesitation",
    5: "perfect",
}


def _parse_date(value: Optional[str]) -> date:
    if value:
        return datetime.strptime(value, "%Y-%m-%d").date()
    return date.today()


def _service() -> ReviewService:
    return ReviewService(SqlReviewStore(SessionLocal))


def _fail(message: str):
    console.print(f"[red]✗[/red] {escape(message)}")
    raise typer.Exit(code=1)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level (default from settings)"),
    log_file: Optional[str] = typer.Option(None, help="Also write logs to this file")
):
    """Configure logging for every command"""
    setup_logging(level=log_level, log_file=log_file)


@app.command()
def init():
    """Initialize database tables"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")


@app.command()
def reset_db(yes: bool = typer.Option(False, "--yes", help="Skip confirmation")):
    """Delete all data and reinitialize database (WARNING: irreversible!)"""
    if not yes and not typer.confirm("⚠️  This will DELETE ALL DATA. Are you sure?"):
        console.print("[yellow]Cancelled.[/yellow]")
        return

    from macrobius_vocab.database import engine, Base
    import macrobius_vocab.models  # noqa: F401
    console.print("[yellow]Dropping all tables...[/yellow]")
    Base.metadata.drop_all(bind=engine)
    console.print("[yellow]Recreating tables...[/yellow]")
    Base.metadata.create_all(bind=engine)
    console.print("[green]✓[/green] Database reset complete! All data deleted.")


@app.command("create-learner")
def create_learner_cmd(
    learner_id: str = typer.Option(..., prompt="Learner ID (letters, digits, . _ -)"),
    name: str = typer.Option(..., prompt="Name"),
    language: str = typer.Option("en", prompt="Interface language (de/en/la)")
):
    """Create a new learner"""
    db = SessionLocal()
    try:
        try:
            learner_data = LearnerCreate(learner_id=learner_id, name=name, language=language)
        except ValueError as e:
            _fail(f"Invalid learner: {e}")
        if get_learner(db, learner_id):
            _fail(f"Learner '{learner_id}' already exists")

        learner = create_learner(db, learner_data)
        console.print(f"[green]✓[/green] Learner created! ID: {learner.id}")
        console.print(f"  Name: {learner.name}")
        console.print(f"  Language: {learner.language}")
    finally:
        db.close()


@app.command()
def list_learners():
    """List all learners"""
    db = SessionLocal()
    try:
        learners = get_learners(db)
        if not learners:
            console.print("[yellow]No learners yet. Create one with create-learner.[/yellow]")
            return
        for learner in learners:
            console.print(f"  {learner.id} - {learner.name} ({learner.language})")
    finally:
        db.close()


@app.command()
def import_words(file_path: str = typer.Argument(..., help="Vocabulary file (.csv or .xlsx)")):
    """Import a vocabulary list"""
    db = SessionLocal()
    try:
        console.print("[yellow]Parsing vocabulary list...[/yellow]")
        try:
            items = VocabularyParser.auto_parse(file_path)
        except (ValueError, OSError) as e:
            _fail(f"Error: {e}")
        console.print(f"[green]✓[/green] Extracted {len(items)} words")

        added = add_vocabulary_items(db, items)
        console.print(f"[green]✓[/green] Added {added} new words ({len(items) - added} already known)")
    finally:
        db.close()


@app.command()
def add_word(
    item_id: str = typer.Option(..., prompt="Word ID"),
    text: str = typer.Option(..., prompt="Latin"),
    gloss: Optional[str] = typer.Option(None, help="Meaning"),
    source: Optional[str] = typer.Option(None, help="Passage reference, e.g. Sat. 1.2.3")
):
    """Add a single vocabulary item"""
    db = SessionLocal()
    try:
        added = add_vocabulary_items(db, [VocabularyItem(item_id=item_id, text=text, gloss=gloss, source=source)])
        if added:
            console.print(f"[green]✓[/green] Added '{text}' as {item_id}")
        else:
            console.print(f"[yellow]Word ID {item_id} already exists[/yellow]")
    finally:
        db.close()


@app.command()
def list_words(
    search: Optional[str] = typer.Option(None, help="Filter by Latin text or gloss"),
    limit: int = typer.Option(50, help="Maximum rows")
):
    """List vocabulary items"""
    db = SessionLocal()
    try:
        items = get_vocabulary_items(db, search=search, limit=limit)
        if not items:
            console.print("[yellow]No words found[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("ID", style="cyan")
        table.add_column("Latin", style="green")
        table.add_column("Gloss")
        table.add_column("Source", style="dim")
        for item in items:
            table.add_row(item.item_id, item.text, item.gloss or "", item.source or "")
        console.print(table)
    finally:
        db.close()


@app.command()
def introduce(
    learner_id: str,
    item_ids: Optional[List[str]] = typer.Argument(None, help="Word IDs (default: every word in the list)"),
    limit: int = typer.Option(1000, help="Maximum words taken from the list when no IDs are given")
):
    """Start tracking words for a learner; they become due immediately"""
    if not item_ids:
        db = SessionLocal()
        try:
            item_ids = [item.item_id for item in get_vocabulary_items(db, limit=limit)]
        finally:
            db.close()
    try:
        added = _service().introduce(learner_id, item_ids)
    except VocabularyReviewError as e:
        _fail(str(e))
    console.print(f"[green]✓[/green] {len(added)} new words added to {learner_id}'s reviews")


@app.command()
def due(
    learner_id: str,
    as_of: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM-DD), default: today")
):
    """Show words due for review, most overdue first"""
    as_of_date = _parse_date(as_of)
    service = _service()
    try:
        records = service.records(learner_id)
        due_ids = service.scheduler.get_due_items(records, as_of_date)
    except VocabularyReviewError as e:
        _fail(str(e))

    if not due_ids:
        console.print(f"[green]Nothing due on {as_of_date}.[/green]")
        return

    db = SessionLocal()
    try:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Word", style="cyan")
        table.add_column("Latin", style="green")
        table.add_column("Due Date", style="yellow")
        table.add_column("Days Overdue", style="red")
        table.add_column("Easiness")

        for item_id in due_ids[:50]:
            record = records[item_id]
            item = get_vocabulary_item(db, item_id)
            days_overdue = SM2Algorithm.get_days_overdue(record.due_date, as_of_date)
            table.add_row(
                item_id,
                item.text if item else "?",
                str(record.due_date),
                str(days_overdue) if days_overdue > 0 else "Today",
                f"{record.easiness_factor:.2f}"
            )
        console.print(table)
        if len(due_ids) > 50:
            console.print(f"[dim]... and {len(due_ids) - 50} more words[/dim]")
    finally:
        db.close()


@app.command()
def review(
    learner_id: str = typer.Option(..., prompt="Learner ID"),
    item_id: str = typer.Option(..., prompt="Word ID"),
    quality: int = typer.Option(..., prompt="Quality rating (0-5)"),
    review_date: Optional[str] = typer.Option(None, help="Review date (YYYY-MM-DD), default: today"),
    response_time_ms: Optional[int] = typer.Option(None, help="Answer time in milliseconds")
):
    """Record one graded review of a word"""
    rev_date = _parse_date(review_date)
    try:
        record = _service().review(learner_id, item_id, quality, rev_date, response_time_ms=response_time_ms)
    except VocabularyReviewError as e:
        _fail(str(e))

    console.print("[green]✓[/green] Review recorded!")
    console.print(f"  Word: {item_id}")
    console.print(f"  Quality: {quality}/5 ({QUALITY_LABELS[quality]})")
    console.print(f"  Next review: {record.due_date} (in {record.interval_days} days)")
    console.print(f"  Easiness: {record.easiness_factor:.2f}")
    console.print(f"  Streak: {record.repetition_count}")


@app.command()
def study(
    learner_id: str,
    limit: int = typer.Option(20, help="Maximum words in this session")
):
    """Interactive review session over the words due today"""
    today = date.today()
    service = _service()
    try:
        due_ids = service.due_items(learner_id, today)[:limit]
    except VocabularyReviewError as e:
        _fail(str(e))

    if not due_ids:
        console.print("[green]Nothing due today. Optime![/green]")
        return

    db = SessionLocal()
    try:
        session = []
        for index, item_id in enumerate(due_ids, 1):
            item = get_vocabulary_item(db, item_id)
            console.print(f"\n[bold]{index}/{len(due_ids)}[/bold]  [cyan]{item.text if item else item_id}[/cyan]")
            typer.prompt("Press Enter to reveal", default="", show_default=False)
            if item and item.gloss:
                console.print(f"  → {item.gloss}")
            for grade, label in QUALITY_LABELS.items():
                console.print(f"  [dim]{grade}: {label}[/dim]")

            started = datetime.now()
            quality = typer.prompt("Quality (0-5, q to stop)")
            if quality.strip().lower() == "q":
                break
            try:
                grade = int(quality)
            except ValueError:
                console.print("[red]Not a number, skipping[/red]")
                continue
            elapsed_ms = int((datetime.now() - started).total_seconds() * 1000)

            try:
                record = service.review(learner_id, item_id, grade, today, response_time_ms=elapsed_ms)
            except VocabularyReviewError as e:
                console.print(f"[red]✗[/red] {e}")
                continue
            session.append(record.review_history[-1])
            console.print(f"  Next review in {record.interval_days} days")

        console.print(f"\n[green]✓[/green] Session finished: {len(session)} words reviewed")
        if session:
            correct = sum(1 for entry in session if entry.quality >= PASSING_QUALITY)
            console.print(f"  Correct: {correct}, incorrect: {len(session) - correct} ({analytics.accuracy(session):.0%})")
            avg_time = analytics.average_response_time(session)
            if avg_time is not None:
                console.print(f"  Average answer time: {avg_time / 1000:.1f}s")
    finally:
        db.close()


@app.command()
def reset_item(
    learner_id: str,
    item_id: str,
    yes: bool = typer.Option(False, "--yes", help="Skip confirmation")
):
    """Restart a word from scratch, discarding its review history"""
    if not yes and not typer.confirm(f"Reset all progress on {item_id}?"):
        console.print("[yellow]Cancelled.[/yellow]")
        return
    try:
        record = _service().reset(learner_id, item_id)
    except VocabularyReviewError as e:
        _fail(str(e))
    console.print(f"[green]✓[/green] {item_id} reset, due {record.due_date}")


@app.command()
def progress(
    learner_id: str,
    as_of: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM-DD), default: today")
):
    """View learning progress"""
    as_of_date = _parse_date(as_of)
    service = _service()
    try:
        records = service.records(learner_id)
    except VocabularyReviewError as e:
        _fail(str(e))
    summary = analytics.summarize(records, as_of_date)

    console.print(f"\n[bold]Learning Progress - {learner_id}[/bold]\n")
    console.print("[cyan]Statistics:[/cyan]")
    console.print(f"  Words tracked: {summary.total_items}")
    console.print(f"  Due for review: {summary.due_items}")
    console.print(f"  Not yet reviewed: {summary.new_items}")
    console.print(f"  Known: {len(summary.known_words)}")
    console.print(f"  Difficult: {len(summary.difficult_words)}")
    if summary.average_easiness is not None:
        console.print(f"  Average easiness: {summary.average_easiness:.2f}")
    if summary.average_performance is not None:
        console.print(f"  Recent performance: {summary.average_performance:.1f}/5")
    if summary.accuracy is not None:
        console.print(f"  Accuracy: {summary.accuracy:.0%}")
    if summary.average_response_time_ms is not None:
        console.print(f"  Average answer time: {summary.average_response_time_ms / 1000:.1f}s")
    console.print(f"  Streak: {summary.current_streak} days (best {summary.best_streak})")
    if summary.performance_trend:
        console.print(f"  Last grades: {' '.join(str(q) for q in summary.performance_trend)}")

    console.print("\n[cyan]By difficulty:[/cyan]")
    for level, item_ids in summary.difficulty_buckets.items():
        console.print(f"  {level.capitalize()}: {len(item_ids)}")

    if summary.difficult_words:
        console.print("\n[yellow]Difficult words:[/yellow]")
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Word", style="cyan")
        table.add_column("Easiness", style="red")
        table.add_column("Recent", style="yellow")
        table.add_column("Level")
        for item_id in summary.difficult_words[:20]:
            record = records[item_id]
            score = analytics.recent_performance(record)
            table.add_row(
                item_id,
                f"{record.easiness_factor:.2f}",
                f"{score:.1f}" if score is not None else "-",
                analytics.mastery_level(record)
            )
        console.print(table)


@app.command()
def export_srs(
    learner_id: str,
    output: Optional[str] = typer.Option(None, help="Write to this file instead of stdout")
):
    """Export a learner's review records as JSON"""
    try:
        blob = _service().export_blob(learner_id)
    except VocabularyReviewError as e:
        _fail(str(e))
    text = json.dumps(blob, ensure_ascii=False, indent=2, sort_keys=True)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        console.print(f"[green]✓[/green] Exported {len(blob)} records to {output}")
    else:
        typer.echo(text)


@app.command()
def import_srs(
    learner_id: str,
    file_path: str = typer.Argument(..., help="JSON file produced by export-srs")
):
    """Replace a learner's review records with an exported JSON blob"""
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            blob = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        _fail(f"Could not read {file_path}: {e}")
    try:
        count = _service().import_blob(learner_id, blob)
    except VocabularyReviewError as e:
        _fail(str(e))
    console.print(f"[green]✓[/green] Imported {count} review records for {learner_id}")


if __name__ == "__main__":
    app()
