class ExportError(Exception):
    """Base class for every failure the exporter reports."""


class BrowserError(ExportError):
    pass


class PrintError(ExportError):
    def __init__(self, page: int, message: str):
        super().__init__(f"page {page}: {message}")
        self.page = page


class ViewerError(ExportError):
    pass


class ContentUnchangedError(ViewerError):
    def __init__(self, page: int, attempts: int):
        super().__init__(f"page {page}: content did not change after {attempts} attempts")
        self.page = page
        self.attempts = attempts


class LoginError(ExportError):
    pass


class ScreenshotError(ExportError):
    pass


class PageCountMismatch(ExportError):
    def __init__(self, expected: int, actual: int):
        if actual < expected:
            msg = f"failed to import all pages! Ebook pages: {expected} | Pages in PDF: {actual}"
        else:
            msg = f"PDF has too many pages! Ebook pages: {expected} | Pages in PDF: {actual}"
        super().__init__(msg)
        self.expected = expected
        self.actual = actual
