"""Minimal LSP server for Strand — diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from strand.errors import EvalError, InterpolationParseError, StrandError
from strand.eval import evaluate
from strand.parser import parse

server = LanguageServer("strand-lsp", "0.1.0", text_document_sync_kind=TextDocumentSyncKind.Full)

# Loop iterations allowed in one trial run.
TRIAL_MAX_STEPS = 10_000


def _discard(text: str) -> None:
    pass


def _diagnostic(exc: StrandError, severity: DiagnosticSeverity) -> Diagnostic:
    message = exc.message
    if isinstance(exc, InterpolationParseError):
        message = f"{message} (inside '${{...}}')"

    if exc.span is None:
        start = end = Position(line=0, character=0)
    else:
        start = Position(line=exc.span.start.line - 1, character=exc.span.start.column - 1)
        end_col = exc.span.end.column - 1
        if exc.span.end == exc.span.start:
            end_col += 1
        end = Position(line=exc.span.end.line - 1, character=end_col)

    return Diagnostic(
        range=Range(start=start, end=end),
        message=message,
        severity=severity,
        source="strand",
    )


def _validate(ls: LanguageServer, uri: str) -> None:
    """Parse (and trial-run) the script and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    source = doc.source
    diagnostics: list[Diagnostic] = []

    try:
        script = parse(source)
    except StrandError as exc:
        diagnostics.append(_diagnostic(exc, DiagnosticSeverity.Error))
    else:
        try:
            evaluate(
                script,
                source,
                on_print=_discard,
                on_debug=_discard,
                max_steps=TRIAL_MAX_STEPS,
            )
        except EvalError as exc:
            diagnostics.append(_diagnostic(exc, DiagnosticSeverity.Warning))

    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
