"""ChromaDB vector store for framing knowledge and content examples."""

import asyncio
import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import chromadb

from models.document import ContentExample


@dataclass
class KnowledgeHit:
    """One knowledge-base search result."""
    source: str
    relevance: float
    text: str
    metadata: dict = field(default_factory=dict)


class ChromaStore:
    """Manages ChromaDB collections for knowledge and examples."""

    CONTENT_EXAMPLES = "content_examples"

    def __init__(self, persist_dir: str | Path):
        self.persist_dir = Path(persist_dir)
        self.persist_dir.mkdir(parents=True, exist_ok=True)
        self.client = chromadb.PersistentClient(path=str(self.persist_dir))
        self.examples = self._collection(self.CONTENT_EXAMPLES)

    def _collection(self, name: str):
        return self.client.get_or_create_collection(
            name=name,
            metadata={"hnsw:space": "cosine"},
        )

    # ---- Knowledge ----

    def add_knowledge(
        self,
        collection: str,
        text: str,
        source: str,
        doc_id: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> str:
        """Store a knowledge snippet in a named collection."""
        doc_id = doc_id or hashlib.sha1(f"{source}:{text}".encode("utf-8")).hexdigest()
        meta = {"source": source, **(metadata or {})}
        self._collection(collection).upsert(ids=[doc_id], documents=[text], metadatas=[meta])
        return doc_id

    def search_knowledge(
        self,
        query: str,
        collections: list[str],
        limit: int = 5,
        threshold: float = 0.0,
    ) -> list[KnowledgeHit]:
        """Search collections, keeping hits at or above ``threshold`` relevance.

        Relevance is ``1 - cosine distance``; results are sorted by relevance
        across all collections and capped at ``limit``.
        """
        hits: list[KnowledgeHit] = []
        for name in collections:
            collection = self._collection(name)
            count = collection.count()
            if count == 0:
                continue
            results = collection.query(
                query_texts=[query],
                n_results=min(limit, count),
                include=["documents", "metadatas", "distances"],
            )
            if not results["documents"] or not results["documents"][0]:
                continue
            for doc, meta, dist in zip(
                results["documents"][0],
                results["metadatas"][0],
                results["distances"][0],
            ):
                relevance = 1.0 - float(dist)
                if relevance < threshold:
                    continue
                meta = dict(meta or {})
                meta.setdefault("collection", name)
                hits.append(KnowledgeHit(
                    source=meta.get("source", ""),
                    relevance=relevance,
                    text=doc,
                    metadata=meta,
                ))

        hits.sort(key=lambda h: h.relevance, reverse=True)
        return hits[:limit]

    # ---- Content Examples ----

    def add_example(
        self,
        platform: str,
        content: str,
        title: str = "",
        locale: str = "de-DE",
        doc_id: Optional[str] = None,
    ) -> str:
        """Store a published text as a stylistic example."""
        doc_id = doc_id or hashlib.sha1(f"{platform}:{content}".encode("utf-8")).hexdigest()
        metadata = {"platform": platform.lower(), "title": title, "locale": locale}
        self.examples.upsert(ids=[doc_id], documents=[content], metadatas=[metadata])
        return doc_id

    def search_examples(
        self,
        platform: str,
        query: str,
        limit: int = 2,
        locale: str = "de-DE",
        fallback_to_any: bool = True,
    ) -> list[ContentExample]:
        """Find examples for a platform; falls back to any examples of it."""
        where = {"$and": [{"platform": platform.lower()}, {"locale": locale}]}
        matched = self.examples.get(where=where, include=[])
        available = len(matched["ids"]) if matched["ids"] else 0

        items: list[tuple[str, dict]] = []
        if available and query:
            results = self.examples.query(
                query_texts=[query],
                n_results=min(limit, available),
                where=where,
                include=["documents", "metadatas"],
            )
            if results["documents"] and results["documents"][0]:
                items = list(zip(results["documents"][0], results["metadatas"][0]))

        if not items and fallback_to_any:
            results = self.examples.get(
                where={"platform": platform.lower()},
                limit=limit,
                include=["documents", "metadatas"],
            )
            if results["documents"]:
                items = list(zip(results["documents"], results["metadatas"]))

        return [
            ContentExample(
                content=doc,
                platform=meta.get("platform", platform),
                title=meta.get("title", ""),
                metadata=dict(meta),
            )
            for doc, meta in items[:limit]
        ]


class ChromaKnowledgeBase:
    """KnowledgeBase backed by a ChromaStore."""

    def __init__(self, store: ChromaStore):
        self.store = store

    async def search(
        self,
        query: str,
        collections: list[str],
        limit: int = 5,
        threshold: float = 0.0,
    ) -> list[KnowledgeHit]:
        return await asyncio.to_thread(self.store.search_knowledge, query, collections, limit, threshold)


class ChromaExampleStore:
    """ExampleStore backed by a ChromaStore."""

    def __init__(self, store: ChromaStore):
        self.store = store

    async def get_examples(
        self, platform: str, query: str, limit: int = 2, locale: str = "de-DE"
    ) -> list[ContentExample]:
        return await asyncio.to_thread(self.store.search_examples, platform, query, limit, locale)
