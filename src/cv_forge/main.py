# Copyright 2026 Justin Cook
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Main entry point for the CV Forge CLI.

The CLI keeps one CV in a JSON file (``--cv``) and applies each command to it
the way the editor UI would: every edit replaces the stored value.
"""

import argparse
import json
import logging
import re
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from cv_forge import editor
from cv_forge.config import Settings, PROVIDERS, set_ca_bundle_override
from cv_forge.errors import CVForgeError, ParseError
from cv_forge.generator import TEMPLATES, DEFAULT_TEMPLATE, CVGenerator
from cv_forge.ingest import read_job_description, read_photo
from cv_forge.llm_client import LLMClient
from cv_forge.models import (
    CVData,
    INITIAL_CV_DATA,
    SCALAR_FIELDS,
    SECTIONS,
    THEME_COLORS,
    entity_to_dict,
    to_camel,
    to_snake,
)
from cv_forge.session import EditorSession

logger = logging.getLogger(__name__)
console = Console()


def setup_logging(verbosity: int, quiet: bool = False, log_dir: Path = Path("user_content/logs")):
    """
    Configures logging:
    - File: <log_dir>/cv.log (DEBUG)
    - Console: default=WARNING, -q=ERROR, -v=INFO, -vv=DEBUG
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in [h for h in root.handlers if getattr(h, "_cv_forge", False)]:
        root.removeHandler(handler)
        handler.close()

    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_dir / "cv.log")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

    if quiet:
        level = logging.ERROR
    elif verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    console_handler = RichHandler(console=Console(stderr=True), show_path=False)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(message)s'))

    for handler in (file_handler, console_handler):
        handler._cv_forge = True
        root.addHandler(handler)

    # Silence some noisy libs if not in debug
    if verbosity < 2:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def load_cv(path: Path) -> CVData:
    """Reads the CV file; a missing file is a fresh, empty CV."""
    if not path.exists():
        logger.info(f"No CV at {path}; starting from an empty CV")
        return INITIAL_CV_DATA
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ParseError(f"{path} is not valid JSON: {e}") from e
    return CVData.from_dict(raw)


def save_cv(cv: CVData, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cv.to_dict(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.debug(f"Saved CV to {path}")


def default_output(cv: CVData, template: str, output_dir: Path) -> Path:
    """Builds <output_dir>/<Full_Name>_<template>.docx from the CV's name."""
    safe_name = re.sub(r'[^\w\s-]', '', cv.full_name)
    safe_name = re.sub(r'[-\s]+', '_', safe_name).strip('-_')[:60] or "CV"
    return output_dir / f"{safe_name}_{template}.docx"


def _parse_assignments(pairs):
    assignments = []
    for pair in pairs or []:
        field, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"Expected FIELD=VALUE, got '{pair}'")
        assignments.append((field.strip(), value))
    return assignments


def _cmd_init(args, settings):
    if args.cv.exists() and not args.force:
        console.print(f"{args.cv} already exists (use --force to overwrite)", style="red")
        return 1
    save_cv(editor.update_field(INITIAL_CV_DATA, "themeColor", args.theme), args.cv)
    console.print(f"Created {args.cv}")
    return 0


def _cmd_show(args, settings):
    cv = load_cv(args.cv)

    table = Table(title=cv.full_name or "Untitled CV", show_header=True)
    table.add_column("Field")
    table.add_column("Value", overflow="fold")
    for name in SCALAR_FIELDS:
        value = getattr(cv, name)
        if name == "photo_url" and value:
            value = f"<photo, {len(value)} chars>"
        table.add_row(to_camel(name), value)
    console.print(table)

    for section in SECTIONS:
        items = getattr(cv, section)
        if not items:
            continue
        section_table = Table(title=section.capitalize())
        section_table.add_column("id")
        section_table.add_column("Entry", overflow="fold")
        for item in items:
            entry = " | ".join(v for k, v in entity_to_dict(item).items() if k != "id" and v)
            section_table.add_row(item.id, entry)
        console.print(section_table)
    return 0


def _cmd_set(args, settings):
    cv = editor.update_field(load_cv(args.cv), args.field, args.value)
    if to_snake(args.field) == "theme_color" and args.value not in THEME_COLORS:
        logger.info(f"{args.value} is not in the standard palette; storing it as given")
    save_cv(cv, args.cv)
    return 0


def _cmd_add(args, settings):
    cv, item_id = editor.add_item(load_cv(args.cv), args.section)
    for field, value in _parse_assignments(args.set):
        cv = editor.update_item(cv, args.section, item_id, field, value)
    save_cv(cv, args.cv)
    console.print(item_id)
    return 0


def _cmd_update(args, settings):
    cv = load_cv(args.cv)
    if not any(item.id == args.id for item in getattr(cv, args.section, ())):
        console.print(f"No {args.section} entry with id {args.id}", style="red")
        return 1
    save_cv(editor.update_item(cv, args.section, args.id, args.field, args.value), args.cv)
    return 0


def _cmd_remove(args, settings):
    cv = load_cv(args.cv)
    updated = editor.remove_item(cv, args.section, args.id)
    if updated == cv:
        console.print(f"No {args.section} entry with id {args.id}", style="red")
        return 1
    save_cv(updated, args.cv)
    return 0


def _cmd_photo(args, settings):
    cv = load_cv(args.cv)
    if args.remove:
        cv = editor.remove_photo(cv)
    elif args.path:
        cv = editor.set_photo(cv, read_photo(args.path, max_bytes=settings.max_photo_bytes))
    else:
        console.print("Give a photo path or --remove", style="red")
        return 1
    save_cv(cv, args.cv)
    return 0


def _cmd_polish(args, settings):
    session = EditorSession(load_cv(args.cv))

    if args.jd:
        jd_text = read_job_description(args.jd)
        if not jd_text:
            console.print("Could not extract text from the job description.", style="red")
            return 1
        session.edit(editor.Edit("targetJobDescription", jd_text.strip()))

    client = LLMClient(provider=args.provider, settings=settings)
    with console.status("Polishing CV (this may take a moment)..."):
        ok = session.polish(client)

    if not ok:
        console.print(session.error, style="red")
        return 1

    save_cv(session.cv, args.cv)
    console.print(f"Polished CV saved to {args.cv}")
    return 0


def _cmd_render(args, settings):
    cv = load_cv(args.cv)
    output = Path(args.output) if args.output else default_output(cv, args.template, settings.home / "generated_cvs")
    output.parent.mkdir(parents=True, exist_ok=True)
    CVGenerator(template=args.template).generate(cv, str(output))
    console.print(f"Wrote {output}")
    return 0


def _cmd_serve(args, settings):
    import uvicorn
    from cv_forge.relay import create_app

    if not settings.nvidia_api_key:
        logger.warning("NVIDIA_API_KEY is not set; relay requests will fail with 500")
    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cv-forge", description="AI assisted CV editor")
    parser.add_argument("--cv", type=Path, help="CV JSON file (default: <CV_FORGE_HOME>/cv.json)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase output verbosity (-v=INFO, -vv=DEBUG)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only show errors")
    parser.add_argument("--ca-bundle", help="Path to a custom CA certificate bundle for HTTPS verification (proxy environments)")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="Create an empty CV file")
    p.add_argument("--theme", default=INITIAL_CV_DATA.theme_color, help="Theme colour")
    p.add_argument("--force", action="store_true", help="Overwrite an existing file")
    p.set_defaults(func=_cmd_init)

    p = sub.add_parser("show", help="Print the CV")
    p.set_defaults(func=_cmd_show)

    p = sub.add_parser("set", help="Set a CV field (e.g. fullName, summary, skills, themeColor)")
    p.add_argument("field")
    p.add_argument("value")
    p.set_defaults(func=_cmd_set)

    p = sub.add_parser("add", help="Append an entry to a section and print its id")
    p.add_argument("section", choices=list(SECTIONS))
    p.add_argument("--set", action="append", metavar="FIELD=VALUE", help="Initial field value (repeatable)")
    p.set_defaults(func=_cmd_add)

    p = sub.add_parser("update", help="Change one field of a section entry")
    p.add_argument("section", choices=list(SECTIONS))
    p.add_argument("id")
    p.add_argument("field")
    p.add_argument("value")
    p.set_defaults(func=_cmd_update)

    p = sub.add_parser("remove", help="Remove a section entry by id")
    p.add_argument("section", choices=list(SECTIONS))
    p.add_argument("id")
    p.set_defaults(func=_cmd_remove)

    p = sub.add_parser("photo", help="Set or remove the profile photo")
    p.add_argument("path", nargs="?", help="Image file")
    p.add_argument("--remove", action="store_true", help="Clear the photo")
    p.set_defaults(func=_cmd_photo)

    p = sub.add_parser("polish", help="Polish the CV with an LLM")
    p.add_argument("--provider", choices=PROVIDERS, help="Override CV_FORGE_PROVIDER")
    p.add_argument("--jd", help="URL or file path of the target job description")
    p.set_defaults(func=_cmd_polish)

    p = sub.add_parser("render", help="Render the CV to DOCX")
    p.add_argument("--template", choices=list(TEMPLATES), default=DEFAULT_TEMPLATE)
    p.add_argument("--output", help="Output filename")
    p.set_defaults(func=_cmd_render)

    p = sub.add_parser("serve", help="Run the NVIDIA API relay")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.set_defaults(func=_cmd_serve)

    return parser


def _main_cli(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings.from_env()

    if args.ca_bundle:
        set_ca_bundle_override(args.ca_bundle)
    if args.cv is None:
        args.cv = settings.home / "cv.json"

    setup_logging(args.verbose, quiet=args.quiet, log_dir=settings.home / "logs")
    logger.debug(f"--- CV Forge: {args.command} ---")

    try:
        return args.func(args, settings)
    except (CVForgeError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        console.print(str(e), style="red")
        return 1


def main(argv=None):
    try:
        sys.exit(_main_cli(argv))
    except KeyboardInterrupt:
        # Use stderr so it captures attention even if stdout is redirected
        sys.stderr.write("\n\033[31m[-] Cancelled by user\033[0m\n")
        sys.exit(130)


if __name__ == "__main__":
    main()
