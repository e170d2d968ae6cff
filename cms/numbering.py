from cms.docstore import DocumentStore


class NumberingAssigner:
    """Computes the next sequential number for a collection field.

    `next_number` only reads. The caller must insert the record inside the
    same `DocumentStore.locked()` section for the number to stay unique.
    """

    def __init__(self, store: DocumentStore, collection: str = "events", field: str = "eventNumber") -> None:
        self.store = store
        self.collection = collection
        self.field = field

    def next_number(self) -> int:
        current = [
            doc[self.field]
            for doc in self.store.find_all(self.collection)
            if isinstance(doc.get(self.field), int) and not isinstance(doc.get(self.field), bool)
        ]
        return max(current, default=0) + 1
