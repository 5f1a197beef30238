"""
Command line entry point.

Usage:
  edubase-export print-pdf --url "https://example.org/viewer?page={page}" --pages 416
  edubase-export walk-viewer --debugger-address 127.0.0.1:9222 --pages 416
  edubase-export books -e you@example.com -p secret
  edubase-export import -e you@example.com -p secret --book-id 58216 -s 2 -m 10
"""
import argparse
import getpass
import logging
import sys
from functools import partial

from tqdm import tqdm

from edubase_export.browser.chrome import (
    chrome_session,
    check_screen_resolution,
    launch_from_params,
)
from edubase_export.book_import.import_book import import_book, login
from edubase_export.config_parameters import load_params
from edubase_export.edubase.library import LibraryProvider
from edubase_export.edubase.login import Credentials
from edubase_export.errors import ExportError
from edubase_export.log_setup import setup_logging
from edubase_export.pdf_export.merge_pages import merge_pages
from edubase_export.pdf_export.print_pages import export_pages
from edubase_export.viewer_walker.walk_viewer import ViewerWalker, resolve_page_count

logger = logging.getLogger("edubase_export.cli")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="edubase-export",
                                 description="Export pages of the edubase document viewer.")
    ap.add_argument("--config", help="YAML file overriding the default parameters")
    ap.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    ap.add_argument("-d", "--debug", action="store_true", help="Show the browser window")
    ap.add_argument("-W", "--width", type=int, help="Browser width in pixels")
    ap.add_argument("-H", "--height", type=int, help="Browser height in pixels")
    sub = ap.add_subparsers(dest="command", required=True)

    pp = sub.add_parser("print-pdf", help="Print each page to pages/page<N>.pdf")
    pp.add_argument("--url", help='Target URL; "{page}" is replaced with the page number')
    pp.add_argument("--pages", type=int, help="Number of pages to print")
    pp.add_argument("--start-page", type=int, help="First page number")
    pp.add_argument("--out", help="Output directory")
    pp.add_argument("--overwrite", action="store_true", help="Re-print pages that already exist")
    pp.add_argument("--keep-going", action="store_true", help="Log failed pages and continue")
    pp.add_argument("--merge", action="store_true", help="Merge the page PDFs into merged.pdf")

    wp = sub.add_parser("walk-viewer", help="Save SVG/HTML for each page of an open viewer")
    target = wp.add_mutually_exclusive_group(required=True)
    target.add_argument("--debugger-address",
                        help="host:port of a running Chrome started with --remote-debugging-port")
    target.add_argument("--url", help="Viewer URL to open in a new browser")
    wp.add_argument("--pages", type=int, help="Number of pages (default: viewer total)")
    wp.add_argument("--out", help="Output directory")
    wp.add_argument("--delay", type=float, help="Seconds to wait before reading each page")

    for name, helptext in (("books", "List the books in your library"),
                           ("import", "Screenshot a book and build one PDF")):
        p = sub.add_parser(name, help=helptext)
        p.add_argument("-e", "--email", help="Edubase email for login")
        p.add_argument("-p", "--password", help="Edubase password for login")
        p.add_argument("-M", "--manual", action="store_true",
                       help="Log in by hand in the opened browser window (e.g. Microsoft login)")
        if name == "import":
            p.add_argument("--book-id", type=int, help="Book id (default: pick from the library)")
            p.add_argument("-s", "--start-page", type=int, default=1, help="Start page")
            p.add_argument("-m", "--max-pages", type=int, default=-1, help="Max pages to import")
            p.add_argument("-t", "--temp", help="Directory for the page screenshots")
            p.add_argument("-o", "--img-overwrite", action="store_true",
                           help="Overwrite existing screenshots")
            p.add_argument("-D", "--page-delay", type=float, help="Seconds to wait on each page")
            p.add_argument("--out", default=".", help="Directory for the finished PDF")
    return ap


def _credentials(args):
    if args.manual:
        return None
    email = args.email or input("Email: ")
    password = args.password or getpass.getpass("Password: ")
    return Credentials(email, password)


def _browser_params(cfg, args, headless=None):
    bp = dict(cfg["browser"])
    if args.width:
        bp["width"] = args.width
    if args.height:
        bp["height"] = args.height
    if args.debug:
        bp["headless"] = False
    if headless is not None:
        bp["headless"] = headless
    return bp


def cmd_print_pdf(args, cfg) -> int:
    pe = cfg["pdf_export"]
    url = args.url or pe["url"]
    page_count = args.pages if args.pages is not None else pe["page_count"]
    start = args.start_page if args.start_page is not None else pe["start_page"]
    if page_count < 1:
        raise ExportError(f"--pages must be at least 1, got {page_count}")
    if start < 1:
        raise ExportError(f"--start-page must be at least 1, got {start}")
    out_dir = args.out or pe["out_dir"]
    launcher = partial(launch_from_params, _browser_params(cfg, args))

    with tqdm(total=page_count, desc="Printing pages") as pbar:
        result = export_pages(url, page_count, out_dir=out_dir, start_page=start,
                              print_options=pe["print_options"], launcher=launcher,
                              overwrite=args.overwrite, keep_going=args.keep_going,
                              progress=lambda _: pbar.update(1))

    logger.info("written=%d skipped=%d failed=%d",
                len(result.written), len(result.skipped), len(result.failed))
    if args.merge:
        merge_pages(out_dir)
    return 1 if result.failed else 0


def cmd_walk_viewer(args, cfg) -> int:
    wcfg = cfg["walker"]
    launch_kwargs = {}
    if args.debugger_address:
        launch_kwargs["debugger_address"] = args.debugger_address
    bp = _browser_params(cfg, args, headless=False if args.url else None)

    with chrome_session(launcher=launch_from_params, browser_params=bp, **launch_kwargs) as driver:
        if args.url:
            driver.get(args.url)
        max_pages = resolve_page_count(driver, args.pages, cfg["viewer"])
        walker = ViewerWalker.from_params(driver, wcfg, cfg["viewer"], out_dir=args.out)
        if args.delay is not None:
            walker.delay = args.delay
        with tqdm(total=max_pages, desc="Walking viewer") as pbar:
            saved = walker.walk(max_pages, progress=lambda _: pbar.update(1))
    logger.info("saved %d of %d pages to %s", len(saved), max_pages, walker.out_dir)
    return 0


def _logged_in_library(driver, args, cfg):
    icfg = cfg["import"]
    login(driver, _credentials(args), manual=args.manual, retries=icfg["login_retries"],
          manual_timeout=icfg["manual_login_timeout_seconds"], viewer_params=cfg["viewer"])
    return LibraryProvider(driver, viewer_params=cfg["viewer"]).get_books()


def _pick_book(books, ask=input):
    for n, book in enumerate(books, start=1):
        print(f"{n:3d}. {book.title} ({book.id})")
    answer = ask("Book number: ").strip()
    try:
        choice = int(answer)
    except ValueError:
        raise ExportError(f"not a book number: {answer!r}") from None
    if not 1 <= choice <= len(books):
        raise ExportError(f"no book number {choice}")
    return books[choice - 1]


def cmd_books(args, cfg) -> int:
    bp = _browser_params(cfg, args, headless=False if args.manual else None)
    with chrome_session(launcher=launch_from_params, browser_params=bp) as driver:
        books = _logged_in_library(driver, args, cfg)
    for book in books:
        print(f"{book.id}\t{book.title}")
    return 0


def cmd_import(args, cfg) -> int:
    icfg = cfg["import"]
    bp = _browser_params(cfg, args, headless=False if args.manual else None)
    check_screen_resolution(bp["width"], bp["height"])

    with chrome_session(launcher=launch_from_params, browser_params=bp) as driver:
        books = _logged_in_library(driver, args, cfg)
        if args.book_id:
            book = next((b for b in books if b.id == args.book_id), None)
            if book is None:
                raise ExportError(f"book {args.book_id} is not in your library")
        else:
            if not books:
                raise ExportError("your library has no books")
            book = _pick_book(books)

        pbar = tqdm(desc="Downloading pages")
        try:
            pdf_path = import_book(
                driver, book,
                start_page=args.start_page,
                max_pages=args.max_pages,
                screenshot_dir=args.temp or icfg["screenshot_dir"],
                out_dir=args.out,
                page_delay=args.page_delay if args.page_delay is not None else icfg["page_delay_seconds"],
                img_overwrite=args.img_overwrite,
                viewer_params=cfg["viewer"],
                progress=lambda _: pbar.update(1),
                on_total=lambda total: setattr(pbar, "total", total),
            )
        finally:
            pbar.close()
    print(pdf_path)
    return 0


COMMANDS = {
    "print-pdf": cmd_print_pdf,
    "walk-viewer": cmd_walk_viewer,
    "books": cmd_books,
    "import": cmd_import,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_params(args.config)
    lcfg = cfg["logging"]
    setup_logging(lcfg["log_dir"], args.log_level or lcfg["level"], lcfg["log_file"])
    try:
        return COMMANDS[args.command](args, cfg)
    except ExportError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
