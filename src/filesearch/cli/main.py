"""Command line interface for managing stores, documents and queries."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Sequence

import httpx

from filesearch.client import FileSearchClient
from filesearch.errors import FileSearchError
from filesearch.models import ChunkingConfig, Document, MetadataEntry, QueryResult, Store
from filesearch.services.generation import GenerationParameters

ClientFactory = Callable[[], FileSearchClient]


def format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = [max([len(header), *(len(row[index] or "") for row in rows)]) for index, header in enumerate(headers)]
    separator = "  ".join("-" * width for width in widths)
    header_line = "  ".join(header.ljust(widths[index]) for index, header in enumerate(headers))
    body = "\n".join("  ".join((cell or "").ljust(widths[index]) for index, cell in enumerate(row)) for row in rows)
    return f"{header_line}\n{separator}\n{body}"


def format_json(data: Any) -> str:
    return json.dumps(data, indent=2)


def _store_rows(stores: Sequence[Store]) -> list[list[str]]:
    return [[store.name, store.display_name or "", store.create_time or ""] for store in stores]


def _document_rows(documents: Sequence[Document]) -> list[list[str]]:
    return [
        [document.name, document.display_name or "", document.state.label, document.create_time or ""]
        for document in documents
    ]


def _chunking(args: argparse.Namespace) -> ChunkingConfig | None:
    if args.max_tokens is None and args.overlap is None:
        return None
    return ChunkingConfig(max_tokens_per_chunk=args.max_tokens, max_overlap_tokens=args.overlap)


def _metadata(args: argparse.Namespace) -> List[MetadataEntry] | None:
    if not args.meta:
        return None
    return [MetadataEntry.parse(value) for value in args.meta]


def format_citations(result: QueryResult) -> str:
    lines = ["", "--- Citations ---"]
    for citation in result.citations:
        parts: list[str] = []
        if citation.title:
            parts.append(f"Title: {citation.title}")
        if citation.uri:
            parts.append(f"URI: {citation.uri}")
        if citation.snippet:
            parts.append(f"Snippet: {citation.snippet}")
        if citation.start_index is not None or citation.end_index is not None:
            end = citation.end_index if citation.end_index is not None else "?"
            parts.append(f"Range: {citation.start_index or 0}-{end}")
        lines.append(f"  {' | '.join(parts)}")
    return "\n".join(lines)


async def _store_command(client: FileSearchClient, args: argparse.Namespace) -> None:
    if args.action == "create":
        store = await client.create_store(args.name)
        print(f"Created store: {store.display_name or store.name}")
        print(f"Name: {store.name}")
    elif args.action == "list":
        page = await client.list_stores(page_size=args.page_size, page_token=args.page_token)
        if args.json:
            print(format_json([store.to_dict() for store in page]))
            return
        if not page.items:
            print("No stores found.")
            return
        print(format_table(["NAME", "DISPLAY NAME", "CREATE TIME"], _store_rows(page.items)))
        if page.next_page_token:
            print(f"\nNext page token: {page.next_page_token}")
    elif args.action == "get":
        store = await client.get_store(args.store_name)
        print(format_json(store.to_dict()))
    elif args.action == "delete":
        await client.delete_store(args.store_name, force=args.force)
        print(f"Deleted store: {args.store_name}")


async def _doc_command(client: FileSearchClient, args: argparse.Namespace) -> None:
    if args.action == "upload":
        document = await client.upload_document(
            args.store_name,
            Path(args.file_path),
            display_name=args.display_name,
            mime_type=args.mime_type,
            chunking_config=_chunking(args),
            metadata=_metadata(args),
        )
        print(f"Uploaded document: {document.name}")
    elif args.action == "import":
        document = await client.import_document(
            args.store_name,
            args.files_api_name,
            chunking_config=_chunking(args),
            metadata=_metadata(args),
        )
        print(f"Imported document: {document.name}")
    elif args.action == "list":
        page = await client.list_documents(args.store_name, page_size=args.page_size, page_token=args.page_token)
        if args.json:
            print(format_json([document.to_dict() for document in page]))
            return
        if not page.items:
            print("No documents found.")
            return
        print(format_table(["NAME", "DISPLAY NAME", "STATE", "CREATE TIME"], _document_rows(page.items)))
        if page.next_page_token:
            print(f"\nNext page token: {page.next_page_token}")
    elif args.action == "get":
        document = await client.get_document(args.doc_name)
        print(format_json(document.to_dict()))
    elif args.action == "delete":
        await client.delete_document(args.doc_name, force=args.force)
        print(f"Deleted document: {args.doc_name}")


async def _query_command(client: FileSearchClient, args: argparse.Namespace) -> None:
    result = await client.query(
        args.store_names,
        args.question,
        model=args.model,
        metadata_filter=args.filter,
        system_instruction=args.system,
        generation=GenerationParameters(
            temperature=args.temperature,
            top_p=args.top_p,
            top_k=args.top_k,
            max_output_tokens=args.max_output_tokens,
        ),
    )
    if args.json:
        print(format_json(result.to_dict()))
        return
    print(result.text)
    if args.show_citations and result.citations:
        print(format_citations(result))


def _add_ingestion_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--max-tokens", type=int, default=None, help="Max tokens per chunk")
    parser.add_argument("--overlap", type=int, default=None, help="Max overlap tokens between chunks")
    parser.add_argument(
        "--meta",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Metadata pair; numeric values are stored as numbers (repeatable)",
    )


def _add_paging_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--page-size", type=int, default=None, help="Maximum results per page")
    parser.add_argument("--page-token", default=None, help="Continuation token from a previous page")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gfss", description="CLI for the Gemini File Search Store API.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_version()}")
    commands = parser.add_subparsers(dest="command", required=True)

    store = commands.add_parser("store", help="Manage file search stores")
    store_actions = store.add_subparsers(dest="action", required=True)
    create = store_actions.add_parser("create", help="Create a new store")
    create.add_argument("--name", required=True, help="Display name for the store")
    _add_paging_options(store_actions.add_parser("list", help="List stores"))
    store_actions.add_parser("get", help="Get store details").add_argument("store_name")
    delete = store_actions.add_parser("delete", help="Delete a store")
    delete.add_argument("store_name")
    delete.add_argument("--force", action="store_true", help="Delete even if the store contains documents")

    doc = commands.add_parser("doc", help="Manage documents")
    doc_actions = doc.add_subparsers(dest="action", required=True)
    upload = doc_actions.add_parser("upload", help="Upload a file to a store")
    upload.add_argument("store_name")
    upload.add_argument("file_path")
    upload.add_argument("--display-name", default=None, help="Display name for the document")
    upload.add_argument("--mime-type", default=None, help="Override the inferred content type")
    _add_ingestion_options(upload)
    import_ = doc_actions.add_parser("import", help="Import a document from the Files API")
    import_.add_argument("store_name")
    import_.add_argument("files_api_name")
    _add_ingestion_options(import_)
    doc_list = doc_actions.add_parser("list", help="List documents in a store")
    doc_list.add_argument("store_name")
    _add_paging_options(doc_list)
    doc_actions.add_parser("get", help="Get document details").add_argument("doc_name")
    doc_delete = doc_actions.add_parser("delete", help="Delete a document")
    doc_delete.add_argument("doc_name")
    doc_delete.add_argument("--force", action="store_true", help="Also delete the document's chunks")

    query = commands.add_parser("query", help="Query one or more stores with a question")
    query.add_argument("store_names", nargs="+", help="Store resource names")
    query.add_argument("--question", "-q", required=True, help="The question to ask")
    query.add_argument("--model", default=None, help="Model to use for generation")
    query.add_argument("--filter", default=None, help="Metadata filter expression")
    query.add_argument("--system", default=None, help="System instruction")
    query.add_argument("--temperature", type=float, default=None)
    query.add_argument("--top-p", type=float, default=None)
    query.add_argument("--top-k", type=int, default=None)
    query.add_argument("--max-output-tokens", type=int, default=None)
    query.add_argument("--show-citations", action="store_true", help="Show citation details")
    query.add_argument("--json", action="store_true", help="Output full JSON result")
    return parser


_HANDLERS: dict[str, Callable[[FileSearchClient, argparse.Namespace], Awaitable[None]]] = {
    "store": _store_command,
    "doc": _doc_command,
    "query": _query_command,
}


async def _run(args: argparse.Namespace, client_factory: ClientFactory) -> None:
    async with client_factory() as client:
        await _HANDLERS[args.command](client, args)


def _version() -> str:
    from filesearch import __version__

    return __version__


def main(argv: Sequence[str] | None = None, *, client_factory: ClientFactory = FileSearchClient) -> int:
    args = build_parser().parse_args(argv if argv is not None else sys.argv[1:])
    try:
        asyncio.run(_run(args, client_factory))
    except (FileSearchError, httpx.HTTPError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
