#!/usr/bin/env python3
import os
import sys
import asyncio
import logging
import argparse
from typing import Optional
from dataclasses import dataclass

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from policast.models.content import NewsItem, SavedProject
from policast.pipeline.content_studio import ContentStudio, StudioError
from policast.services.gemini_service import GeminiService
from policast.services.project_store import ProjectStore, ProjectStoreError
from policast.utils.error_monitoring import AIServiceError
from policast.utils.logging_config import setup_logging
from policast.utils.script_format import render_script


@dataclass
class AppConfig:
    """Studio configuration"""
    gemini_api_key: str

    # Paths
    database_path: str = "data/policast.db"
    prompts_path: Optional[str] = None
    export_dir: str = "."
    log_dir: str = "logs"

    # Retry
    max_retries: int = 3
    retry_base_delay: float = 2.0

    # Logging
    log_level: str = "INFO"
    structured_logs: bool = False


def load_config() -> AppConfig:
    """Load configuration from the environment"""
    return AppConfig(
        gemini_api_key=os.getenv('GEMINI_API_KEY') or os.getenv('API_KEY', ''),
        database_path=os.getenv('POLICAST_DB_PATH', 'data/policast.db'),
        prompts_path=os.getenv('POLICAST_PROMPTS_PATH') or None,
        export_dir=os.getenv('POLICAST_EXPORT_DIR', '.'),
        log_dir=os.getenv('LOG_DIR', 'logs'),
        max_retries=int(os.getenv('MAX_RETRIES', '3')),
        retry_base_delay=float(os.getenv('RETRY_BASE_DELAY', '2.0')),
        log_level=os.getenv('LOG_LEVEL', 'INFO'),
        structured_logs=(os.getenv('STRUCTURED_LOGS', 'false').lower() == 'true'),
    )


def print_news(items) -> None:
    for index, item in enumerate(items, start=1):
        source = f" ({item.source})" if item.source else ""
        print(f"{index:2}. {item.title}{source}")
        print(f"    {item.snippet}")


def print_saved(projects) -> None:
    if not projects:
        print("No saved projects yet.")
        return
    for project in projects:
        status = "kit" if project.generated_content else "no kit"
        print(f"{project.id}  {project.saved_at[:19]}  [{status}]  {project.news_item.title}")


def print_project(project: SavedProject) -> None:
    item: NewsItem = project.news_item
    print(f"\n=== {item.title} ===")
    if item.source or item.published_date:
        print(f"{item.source or ''} {item.published_date or ''}".strip())
    if item.url:
        print(item.url)
    print(f"\n{item.snippet}")

    content = project.generated_content
    if content is None:
        print("\n(no content generated yet)")
        return

    print("\n--- Summary (English) ---")
    print(content.summary_english)
    print("\n--- Summary (Burmese) ---")
    print(content.summary_burmese)
    print("\n--- Titles ---")
    for title in content.burmese_titles:
        print(f"  • {title}")
    print("\n--- Video script ---")
    print(render_script(content.script_burmese))
    print("\n--- Facebook post ---")
    print(content.facebook_post_burmese)
    print("\n--- Visual prompts ---")
    for prompt in content.visual_prompts:
        print(f"  • {prompt}")
    print("\n--- Image search queries ---")
    for query in content.image_queries:
        print(f"  • {query}")
    if project.grounding_images:
        print("\n--- Related images ---")
        for image in project.grounding_images:
            print(f"  • {image.title}: {image.url}")


def confirm(prompt: str) -> bool:
    response = input(f"{prompt} Type 'yes' to confirm: ")
    return response.strip().lower() == 'yes'


def build_studio(config: AppConfig) -> ContentStudio:
    gemini = GeminiService(
        api_key=config.gemini_api_key or None,
        prompts_path=config.prompts_path,
        max_retries=config.max_retries,
        base_delay=config.retry_base_delay,
    )
    store = ProjectStore(db_path=config.database_path, export_dir=config.export_dir)
    return ContentStudio(gemini, store)


HELP_TEXT = """Commands:
  fetch            load (more) headlines
  news             list loaded headlines
  open N           select headline N (or a news id)
  generate         generate the content kit for the selected headline
  save             save the selected project again
  export-project   write the selected project to a JSON file
  saved            list saved projects
  show ID          open a saved project
  delete ID        delete a saved project
  export [PATH]    export all saved projects
  import PATH      merge projects from a JSON file
  help             show this help
  quit             leave"""


async def interactive_session(studio: ContentStudio) -> None:
    """Discover / detail / saved loop on the terminal."""
    selected: Optional[NewsItem] = None
    current: Optional[SavedProject] = None

    print("PoliCast — type 'help' for commands.")
    try:
        print("Fetching latest political headlines...")
        print_news(await studio.fetch_news())
    except StudioError as e:
        print(f"⚠️  {e.user_message}")

    while True:
        try:
            line = input("\npolicast> ").strip()
        except EOFError:
            break
        if not line:
            continue
        command, _, arg = line.partition(" ")
        arg = arg.strip()

        try:
            if command in ("quit", "exit", "q"):
                break
            elif command == "help":
                print(HELP_TEXT)
            elif command == "fetch":
                added = await studio.fetch_news()
                print(f"{len(added)} new headlines.")
                print_news(studio.feed.items)
            elif command == "news":
                if len(studio.feed):
                    print_news(studio.feed.items)
                else:
                    print("No news found. Try 'fetch'.")
            elif command == "open":
                item = studio.feed.get(arg)
                if item is None:
                    print(f"No headline {arg!r}")
                    continue
                selected, current = item, None
                print(f"Selected: {item.title}")
            elif command == "generate":
                if selected is None:
                    print("Select a headline first with 'open N' or 'show ID'.")
                    continue
                print("Generating content kit...")
                current = await studio.generate_kit(selected, existing=current)
                print_project(current)
                print(f"\nSaved as {current.id}")
            elif command == "save":
                if current is None:
                    print("Nothing to save yet. Generate content first.")
                    continue
                await studio.save(current)
                print("Project saved to your local list!")
            elif command == "export-project":
                if current is None:
                    print("Open or generate a project first.")
                    continue
                print(f"Wrote {await studio.export_project(current.id, arg or None)}")
            elif command == "saved":
                print_saved(await studio.saved_projects())
            elif command == "show":
                project = await studio.get_project(arg)
                if project is None:
                    print(f"No saved project {arg!r}")
                    continue
                selected, current = project.news_item, project
                print_project(project)
            elif command == "delete":
                if confirm("Are you sure you want to delete this saved project?"):
                    print("Deleted." if await studio.delete(arg) else f"No saved project {arg!r}")
                    if current is not None and current.id == arg:
                        current = None
            elif command == "export":
                print(f"Wrote {await studio.export_all(arg or None)}")
            elif command == "import":
                result = await studio.import_file(arg)
                print(f"Imported {result.imported} of {result.total} projects ({result.skipped} already saved).")
            else:
                print(f"Unknown command {command!r}. Type 'help'.")
        except StudioError as e:
            print(f"⚠️  {e.user_message}")
        except (ProjectStoreError, OSError) as e:
            print(f"❌ {e}")


async def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description="PoliCast political news content studio")
    parser.add_argument('--fetch', action='store_true', help='Fetch and print the latest headlines')
    parser.add_argument('--generate', type=int, metavar='N', help='Fetch headlines, then generate a kit for headline N')
    parser.add_argument('--saved', action='store_true', help='List saved projects')
    parser.add_argument('--show', metavar='ID', help='Print a saved project')
    parser.add_argument('--delete', metavar='ID', help='Delete a saved project')
    parser.add_argument('--export', nargs='?', const='', metavar='PATH', help='Export all saved projects')
    parser.add_argument('--export-project', nargs='+', metavar=('ID', 'PATH'), help='Export one saved project')
    parser.add_argument('--import', dest='import_path', metavar='PATH', help='Merge projects from a JSON file')
    parser.add_argument('--clear', action='store_true', help='Delete ALL saved projects')
    parser.add_argument('--stats', action='store_true', help='Show saved project statistics')
    parser.add_argument('--health', action='store_true', help='Check Gemini connectivity')
    parser.add_argument('--interactive', action='store_true', help='Interactive session (default)')
    args = parser.parse_args()

    config = load_config()
    setup_logging(
        log_level=config.log_level,
        log_dir=config.log_dir,
        enable_structured_logging=config.structured_logs,
    )

    try:
        studio = build_studio(config)
        await studio.store.initialize_db()

        if args.health:
            ok = await studio.gemini.test_connection()
            print(f"  gemini: {'✅' if ok else '❌'}")
            if not ok:
                sys.exit(1)
        elif args.fetch:
            print_news(await studio.fetch_news())
        elif args.generate is not None:
            await studio.fetch_news()
            item = studio.feed.get(args.generate)
            if item is None:
                print(f"❌ No headline number {args.generate}")
                sys.exit(1)
            project = await studio.generate_kit(item)
            print_project(project)
            print(f"\nSaved as {project.id}")
        elif args.saved:
            print_saved(await studio.saved_projects())
        elif args.show:
            project = await studio.get_project(args.show)
            if project is None:
                print(f"❌ No saved project {args.show}")
                sys.exit(1)
            print_project(project)
        elif args.delete:
            if confirm("Are you sure you want to delete this saved project?"):
                deleted = await studio.delete(args.delete)
                print("✅ Deleted" if deleted else f"❌ No saved project {args.delete}")
            else:
                print("❌ Delete cancelled")
        elif args.export is not None:
            print(f"✅ Wrote {await studio.export_all(args.export or None)}")
        elif args.export_project:
            project_id = args.export_project[0]
            path = args.export_project[1] if len(args.export_project) > 1 else None
            print(f"✅ Wrote {await studio.export_project(project_id, path)}")
        elif args.import_path:
            result = await studio.import_file(args.import_path)
            print(f"✅ Imported {result.imported} of {result.total} projects")
        elif args.clear:
            print("🗑️  WARNING: This will delete ALL saved projects!")
            if confirm("Are you sure?"):
                print(f"✅ Cleared {await studio.store.clear_all()} saved projects")
            else:
                print("❌ Clear cancelled")
        elif args.stats:
            stats = await studio.store.get_statistics()
            print(f"Saved projects: {stats['total_projects']} ({stats['with_content']} with content)")
            print(f"Grounding images: {stats['grounding_images']}")
            if stats['date_range']:
                print(f"Oldest: {stats['date_range']['oldest']}")
                print(f"Newest: {stats['date_range']['newest']}")
        else:
            await interactive_session(studio)
    except StudioError as e:
        print(f"⚠️  {e.user_message}")
        sys.exit(1)
    except (AIServiceError, ProjectStoreError) as e:
        print(f"❌ {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n⚠️ Shutting down...")
    except Exception as e:  # noqa: BLE001
        print(f"❌ Fatal error: {e}")
        logging.exception("Fatal error in main")
        sys.exit(1)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
