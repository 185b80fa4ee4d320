"""
DocIndex — Indexer Orchestrator

Responsibilities:
- Single-file ingestion against the current vocabulary
- Directory ingestion with the two-pass protocol:
    1. read + chunk every file
    2. build one vocabulary over all chunks, embed every chunk
    3. persist each document in its own transaction
- Query-time retrieval (embed query → full scan → rank)
- Stats, export, delete, clear

Per-file failures are logged and recorded, never raised past the
indexer. Configuration errors propagate.

Config Sources:
- config/settings.yaml → chunking, embedding, indexing, retrieval
- config/db.yaml → storage
"""

import asyncio
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from docindex.chunking.detector import content_type_for_file
from docindex.chunking.orchestrator import DocumentChunker
from docindex.config.settings import (
    ChunkerConfig,
    EmbedderConfig,
    IndexerConfig,
    StoreConfig,
)
from docindex.errors import (
    ConfigurationError,
    DocIndexError,
    EmptyContent,
    FileReadFailed,
    NoChunksGenerated,
    UnsupportedFileType,
    VocabularyNotLoaded,
)
from docindex.indexer.scanner import find_documents
from docindex.indexer.types import (
    ChunkedDocument,
    DirectoryResult,
    EmbeddedDocument,
    IndexOutcome,
    RawDocument,
    SearchResult,
)
from docindex.store.sqlite_store import VectorStore
from docindex.utils.hashing import content_hash, document_id
from docindex.utils.logging_utils import get_component_logger
from docindex.vector.embedder import VectorEmbedder
from docindex.vector.similarity import rank
from docindex.vector.vocabulary import Vocabulary


logger = get_component_logger("DocumentIndexer", component="ingestion")
search_logger = get_component_logger("DocumentSearch", component="retrieval")

PREVIEW_CHARS = 200


def _fresh_stats() -> Dict:
    return {
        "files_processed": 0,
        "documents_indexed": 0,
        "chunks_created": 0,
        "embeddings_generated": 0,
        "errors": []
    }


class DocumentIndexer:

    def __init__(
        self,
        config: Optional[IndexerConfig] = None,
        chunker_config: Optional[ChunkerConfig] = None,
        embedder_config: Optional[EmbedderConfig] = None,
        store_config: Optional[StoreConfig] = None,
        store: Optional[VectorStore] = None
    ):

        self.config = config or IndexerConfig.from_settings()
        self.chunker = DocumentChunker(chunker_config or ChunkerConfig.from_settings())
        self.embedder = VectorEmbedder(embedder_config or EmbedderConfig.from_settings())
        self.store = store or VectorStore(store_config or StoreConfig.from_settings())

        # single writer for the vocabulary
        self._lock = threading.RLock()
        self.stats = _fresh_stats()

        logger.info("DocumentIndexer initialized")

    # =====================================================
    # PIPELINE STAGES
    # =====================================================

    def _read(self, path) -> RawDocument:

        path = Path(path)

        if not path.is_file():
            raise FileReadFailed(str(path), "not a file")

        extension = path.suffix.lower()
        if extension not in self.config.supported_extensions:
            raise UnsupportedFileType(str(path), extension)

        try:
            data = path.read_bytes()
            content = data.decode("utf-8")
            stat = path.stat()
        except UnicodeDecodeError as e:
            raise FileReadFailed(str(path), f"not valid UTF-8 ({e.reason})") from e
        except OSError as e:
            raise FileReadFailed(str(path), e.strerror or str(e)) from e

        if not content.strip():
            raise EmptyContent(str(path))

        resolved = str(path.resolve())

        return RawDocument(
            id=document_id(resolved),
            filename=path.name,
            path=resolved,
            content_type=content_type_for_file(extension, content),
            size_bytes=stat.st_size,
            content_hash=content_hash(data),
            content=content,
            metadata={
                "extension": extension,
                "last_modified": datetime.fromtimestamp(
                    stat.st_mtime, tz=timezone.utc
                ).isoformat(),
                "content_preview": content[:PREVIEW_CHARS]
            }
        )

    def _chunk(self, raw: RawDocument) -> ChunkedDocument:

        chunks = self.chunker.chunk(raw.content, raw.content_type)

        if not chunks:
            raise NoChunksGenerated(raw.path)

        return ChunkedDocument(raw=raw, chunks=[c.bind(raw.id) for c in chunks])

    def _stored(self, raw: RawDocument) -> Optional[Dict]:
        return self.store.get_document(raw.id)

    def _persist(self, embedded: EmbeddedDocument, replace: bool):

        raw = embedded.raw

        with self.store.transaction():
            if replace:
                # drop chunks the new content no longer produces
                self.store.delete_document(raw.id)
            self.store.put_document(**raw.record())
            self.store.put_chunks(raw.id, embedded.chunks)
            self.store.put_embeddings(embedded.embeddings)

        self.stats["files_processed"] += 1
        self.stats["documents_indexed"] += 1
        self.stats["chunks_created"] += len(embedded.chunks)
        self.stats["embeddings_generated"] += len(embedded.embeddings)

    def _record_error(self, path, error: Exception, errors: Optional[List] = None):

        entry = {
            "file": str(path),
            "error": str(error),
            "type": type(error).__name__,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        self.stats["errors"].append(entry)
        if errors is not None:
            errors.append(entry)

    # =====================================================
    # VOCABULARY
    # =====================================================

    def load_vocabulary(self) -> Vocabulary:
        """Resident vocabulary, loading the persisted one on first use."""

        with self._lock:
            vocabulary = self.embedder.vocabulary

            if vocabulary is None or vocabulary.size == 0:
                vocabulary = self.store.get_vocabulary()
                if vocabulary is None:
                    raise VocabularyNotLoaded()
                self.embedder.load_vocabulary(vocabulary)

            return vocabulary

    # =====================================================
    # SINGLE FILE
    # =====================================================

    def index_document(self, path, force: Optional[bool] = None) -> Optional[IndexOutcome]:

        force = self.config.force if force is None else force

        logger.info(f"Processing: {path}")

        try:
            raw = self._read(path)

            stored = self._stored(raw)
            if stored and not force and stored["content_hash"] == raw.content_hash:
                logger.info(f"Skipping unchanged file: {path}")
                return None

            chunked = self._chunk(raw)

            with self._lock:
                try:
                    vocabulary = self.load_vocabulary()
                    built = False
                except VocabularyNotLoaded:
                    vocabulary = self.embedder.build_vocabulary(chunked.chunks)
                    built = True

                embedded = EmbeddedDocument(chunked, self.embedder.embed_chunks(chunked.chunks))
                self._persist(embedded, replace=stored is not None)

                if built:
                    self.store.put_vocabulary(vocabulary)

        except ConfigurationError:
            raise

        except (UnsupportedFileType, EmptyContent) as e:
            logger.warning(f"Skipped {path}: {e}")
            return None

        except DocIndexError as e:
            logger.error(f"Error processing {path}: {e}")
            self._record_error(path, e)
            return None

        logger.info(
            f"Indexed {raw.filename}: {len(embedded.chunks)} chunks, "
            f"{len(embedded.embeddings)} embeddings"
        )

        return IndexOutcome(
            document=raw.record(),
            chunks=len(embedded.chunks),
            embeddings=len(embedded.embeddings),
            epoch=vocabulary.epoch
        )

    # =====================================================
    # DIRECTORY (TWO-PASS)
    # =====================================================

    def find_documents(
        self,
        directory,
        pattern: Optional[str] = None,
        max_files: Optional[int] = None,
        recursive: Optional[bool] = None
    ) -> List[Path]:

        return find_documents(
            directory,
            self.config.supported_extensions,
            recursive=self.config.recursive if recursive is None else recursive,
            pattern=pattern if pattern is not None else self.config.pattern,
            max_files=max_files or self.config.scan_limit,
            skip_dirs=self.config.skip_dirs
        )

    def index_directory(
        self,
        directory,
        recursive: Optional[bool] = None,
        pattern: Optional[str] = None,
        max_files: Optional[int] = None,
        force: Optional[bool] = None
    ) -> DirectoryResult:

        force = self.config.force if force is None else force

        logger.info(f"Indexing directory: {directory}")

        files = self.find_documents(
            directory,
            pattern=pattern,
            max_files=max_files or self.config.max_files,
            recursive=recursive
        )

        result = DirectoryResult(total=len(files))

        if not files:
            return result

        # -----------------------------------------
        # PASS 1: read and chunk everything
        # -----------------------------------------

        staged: List[ChunkedDocument] = []
        stored_ids = set()

        for path in files:
            try:
                raw = self._read(path)
                stored = self._stored(raw)

                if stored:
                    stored_ids.add(raw.id)

                if stored and not force and stored["content_hash"] == raw.content_hash:
                    chunks = self.store.get_chunks(raw.id)
                    if chunks:
                        staged.append(ChunkedDocument(raw=raw, chunks=chunks, unchanged=True))
                        continue

                staged.append(self._chunk(raw))

            except ConfigurationError:
                raise

            except DocIndexError as e:
                logger.warning(f"Error reading {path}: {e}")
                self._record_error(path, e, result.errors)

        all_chunks = [chunk for doc in staged for chunk in doc.chunks]

        if not all_chunks:
            logger.warning("No valid chunks found in any document")
            result.skipped = result.total
            return result

        with self._lock:

            # -----------------------------------------
            # PASS 2: one vocabulary, then embed
            # -----------------------------------------

            vocabulary = self.embedder.build_vocabulary(all_chunks)

            embedded = [
                EmbeddedDocument(doc, self.embedder.embed_chunks(doc.chunks))
                for doc in staged
            ]

            # -----------------------------------------
            # PERSIST: one transaction per document
            # -----------------------------------------

            for doc in embedded:
                try:
                    if doc.chunked.unchanged:
                        self.store.put_embeddings(doc.embeddings)
                        result.refreshed += 1
                    else:
                        self._persist(doc, replace=doc.chunked.id in stored_ids)
                        result.indexed += 1
                        logger.info(f"Stored: {doc.raw.filename} ({len(doc.chunks)} chunks)")

                except DocIndexError as e:
                    logger.error(f"Error storing {doc.raw.path}: {e}")
                    self._record_error(doc.raw.path, e, result.errors)

            self.store.put_vocabulary(vocabulary)

        result.skipped = result.total - result.indexed

        if self.store.config.backup_after_batch:
            self.store.export_snapshot()

        logger.info(
            f"Directory indexing complete: {result.indexed}/{result.total} indexed, "
            f"{result.refreshed} refreshed, {len(result.errors)} errors"
        )

        return result

    # =====================================================
    # SEARCH
    # =====================================================

    def search(
        self,
        query: str,
        top_k: Optional[int] = None,
        min_similarity: Optional[float] = None
    ) -> List[SearchResult]:

        top_k = self.config.top_k if top_k is None else top_k
        min_similarity = self.config.min_similarity if min_similarity is None else min_similarity

        if top_k < 0:
            raise ConfigurationError(f"top_k must be >= 0, got {top_k}")

        if not query or not query.strip():
            return []

        search_logger.info(f"Searching for: {query!r}")

        vocabulary = self.load_vocabulary()

        # pin the vocabulary so a concurrent rebuild cannot swap it mid-query
        query_vector = VectorEmbedder(self.embedder.config, vocabulary).embed_query(query)

        candidates = self.store.all_embeddings()

        if not candidates:
            search_logger.info("No embeddings found in index")
            return []

        ranked = rank(
            query_vector,
            candidates,
            top_k=top_k,
            min_similarity=min_similarity,
            epoch=vocabulary.epoch,
            on_stale=self.config.on_stale_embeddings
        )

        search_logger.info(f"Found {len(ranked)} relevant chunks")

        return [
            SearchResult(
                similarity=r["similarity"],
                chunk={
                    "id": r["chunk_id"],
                    "content": r["content"],
                    "chunk_type": r["chunk_type"],
                    "chunk_index": r["chunk_index"],
                    "metadata": r["chunk_metadata"]
                },
                document={
                    "id": r["document_id"],
                    "filename": r["filename"]
                },
                epoch=r["epoch"]
            )
            for r in ranked
        ]

    async def search_async(
        self,
        query: str,
        top_k: Optional[int] = None,
        min_similarity: Optional[float] = None
    ) -> List[SearchResult]:
        return await asyncio.to_thread(self.search, query, top_k, min_similarity)

    # =====================================================
    # MAINTENANCE
    # =====================================================

    def get_index_stats(self) -> Dict:

        vocabulary = self.embedder.vocabulary

        return {
            "processing": {**self.stats, "errors": list(self.stats["errors"])},
            "storage": self.store.get_stats(),
            "embedding": {
                "vocabulary_size": vocabulary.size if vocabulary else 0,
                "epoch": vocabulary.epoch if vocabulary else None,
                "method": self.embedder.config.method
            },
            "last_updated": datetime.now(timezone.utc).isoformat()
        }

    def export_index(self) -> Dict:
        snapshot = self.store.export_snapshot()
        return {**self.get_index_stats(), "snapshot": snapshot}

    def delete_document(self, document_id: str) -> bool:
        return self.store.delete_document(document_id) > 0

    def clear_index(self):

        logger.info("Clearing document index...")

        with self._lock:
            self.store.clear()
            self.embedder.vocabulary = None
            self.stats = _fresh_stats()

        logger.info("Index cleared")

    def close(self):
        logger.info("Closing document indexer...")
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
