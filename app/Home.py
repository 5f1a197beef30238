"""Home page for Streamlit app."""
import streamlit as st
from streamlit import cache_data
from functools import partial
from pathlib import Path
import shutil

from edubase_export.browser.chrome import chrome_session, launch_from_params, check_screen_resolution
from edubase_export.book_import.import_book import import_book, login
from edubase_export.config_parameters import load_params
from edubase_export.edubase.library import Book, LibraryProvider
from edubase_export.edubase.login import Credentials
from edubase_export.errors import ExportError
from edubase_export.log_setup import setup_logging
from edubase_export.pdf_export.merge_pages import merge_pages
from edubase_export.pdf_export.print_pages import export_pages
from edubase_export.viewer_walker.walk_viewer import ViewerWalker, resolve_page_count

PARAMS = load_params()
setup_logging(PARAMS["logging"]["log_dir"], PARAMS["logging"]["level"], PARAMS["logging"]["log_file"])

OUT_DIR = Path("exports")
OUT_DIR.mkdir(exist_ok=True)


@cache_data(ttl=3600, show_spinner=False)  # cache result for 1h (3600s)
def fetch_books(email, password):
    """Logs in with a headless browser and returns the books of the library as (id, title) pairs."""
    with chrome_session(launcher=launch_from_params, browser_params=PARAMS["browser"]) as driver:
        login(driver, Credentials(email, password), retries=PARAMS["import"]["login_retries"],
              viewer_params=PARAMS["viewer"])
        books = LibraryProvider(driver, viewer_params=PARAMS["viewer"]).get_books()
    return [(b.id, b.title) for b in books]


st.title("Edubase page export tool")

st.markdown(
    """This tool exports the pages of a book from the edubase document viewer (https://app.edubase.ch).
    Books can be imported into a single PDF, printed page by page, or saved as SVG vector pages.
    """
)

tab_import, tab_print, tab_walk = st.tabs(["Import book", "Print pages to PDF", "Save SVG pages"])

### BOOK IMPORT
with tab_import:
    st.header("Import a book from your library")
    st.markdown(
        """
        Sign in with your edubase account and choose a book. Each page is screenshotted into
        the "screenshots" folder and the screenshots are combined into one PDF.\n
        Screenshots that are already present in the folder will be skipped.
        """
    )
    email = st.text_input("Email")
    password = st.text_input("Password", type="password")

    if "books" not in st.session_state:
        st.session_state.books = []

    if st.button("Fetch books", disabled=not (email and password)):
        with st.spinner("Signing in and fetching your library ..."):
            try:
                st.session_state.books = [Book(i, t) for i, t in fetch_books(email, password)]
            except ExportError as exc:
                st.error(f"Could not fetch books: {exc}")

    if st.session_state.books:
        book = st.selectbox("Book", st.session_state.books, format_func=lambda b: b.title)
        left, right = st.columns(2)
        with left:
            start_page = st.number_input("Start page", min_value=1, value=1, step=1, width=150)
        with right:
            max_pages = st.number_input("Max pages (-1 for all)", min_value=-1, value=-1, step=1, width=150)
        img_overwrite = st.checkbox("Overwrite existing screenshots")

        if st.button("Start import"):
            if not check_screen_resolution(PARAMS["browser"]["width"], PARAMS["browser"]["height"]):
                st.warning("The browser window is smaller than 1920x1080; page count detection may fail.")
            bar = st.progress(0.0, text="Downloading pages...")
            totals = {"total": max_pages if max_pages > 0 else 0}
            done = []

            def on_page(page):
                done.append(page)
                if totals["total"]:
                    bar.progress(min(len(done) / totals["total"], 1.0), text=f"Page {page}")

            with st.status("Importing book ...", state="running", expanded=True) as status:
                try:
                    with chrome_session(launcher=launch_from_params, browser_params=PARAMS["browser"]) as driver:
                        login(driver, Credentials(email, password),
                              retries=PARAMS["import"]["login_retries"], viewer_params=PARAMS["viewer"])
                        pdf_path = import_book(
                            driver, book,
                            start_page=int(start_page),
                            max_pages=int(max_pages),
                            screenshot_dir=PARAMS["import"]["screenshot_dir"],
                            out_dir=OUT_DIR,
                            page_delay=PARAMS["import"]["page_delay_seconds"],
                            img_overwrite=img_overwrite,
                            viewer_params=PARAMS["viewer"],
                            progress=on_page,
                            on_total=lambda total: totals.update(total=total),
                        )
                except ExportError as exc:
                    status.update(label=f"Import failed: {exc}", state="error")
                    st.stop()
                status.update(label="Import complete!", state="complete", expanded=False)

            st.download_button(
                label="Download PDF",
                data=pdf_path.read_bytes(),
                file_name=pdf_path.name,
                mime="application/pdf",
            )

### PRINT PAGES
with tab_print:
    st.header("Print each page of a viewer URL to PDF")
    st.markdown(
        """
        A fresh headless browser is started for every page and the page is printed to
        "pages/page&lt;N&gt;.pdf". Use "{page}" in the URL where the page number goes.
        """
    )
    url = st.text_input("Target URL", value=PARAMS["pdf_export"]["url"])
    page_count = st.number_input("Number of pages", min_value=1, value=PARAMS["pdf_export"]["page_count"], step=1, width=150)
    merge = st.checkbox("Merge pages into one PDF", value=True)

    if st.button("Start printing", disabled=not url):
        out_dir = Path(PARAMS["pdf_export"]["out_dir"])
        bar = st.progress(0.0, text="Printing pages...")
        launcher = partial(launch_from_params, PARAMS["browser"])
        result = export_pages(
            url, int(page_count), out_dir=out_dir,
            print_options=PARAMS["pdf_export"]["print_options"], launcher=launcher,
            keep_going=True,
            progress=lambda page: bar.progress(page / int(page_count), text=f"Page {page}"),
        )
        st.write(f"Written: {len(result.written)}, skipped: {len(result.skipped)}, failed: {len(result.failed)}")
        for page, msg in result.failed.items():
            st.error(f"Page {page}: {msg}")
        if merge and (result.written or result.skipped):
            merged = merge_pages(out_dir)
            st.download_button(
                label="Download merged PDF",
                data=merged.read_bytes(),
                file_name=merged.name,
                mime="application/pdf",
            )

### SVG PAGES
with tab_walk:
    st.header("Save the SVG layer of every page")
    st.markdown(
        """
        Start Chrome with `--remote-debugging-port=9222`, open the book in the viewer at the first
        page you want, then enter the debugger address below. Every page is saved as
        "page-N.svg" together with an HTML file that shows it on its background.
        """
    )
    debugger_address = st.text_input("Debugger address", value="127.0.0.1:9222")
    walk_pages = st.number_input("Number of pages (0 for all)", min_value=0, value=0, step=1, width=150)

    if st.button("Start saving pages", disabled=not debugger_address):
        with st.status("Walking viewer ...", state="running", expanded=True) as status:
            try:
                with chrome_session(launcher=launch_from_params, browser_params=PARAMS["browser"],
                                    debugger_address=debugger_address) as driver:
                    total = resolve_page_count(driver, int(walk_pages) or None, PARAMS["viewer"])
                    walker = ViewerWalker.from_params(driver, PARAMS["walker"], PARAMS["viewer"])
                    saved = walker.walk(total, progress=lambda page: status.update(label=f"Page {page}/{total}"))
            except ExportError as exc:
                status.update(label=f"Failed: {exc}", state="error")
                st.stop()
            status.update(label=f"Saved {len(saved)} of {total} pages", state="complete", expanded=False)

        with st.status("Zipping SVG pages ...", state="running", expanded=True) as status:
            zip_path = Path("svg_pages.zip")
            shutil.make_archive(zip_path.stem, 'zip', walker.out_dir)

        st.download_button(
            label="Download SVG pages",
            data=zip_path.read_bytes(),
            file_name=zip_path.name,
            mime="application/zip",
        )
