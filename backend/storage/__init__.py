# Storage module
from .store import BlobStore, JsonFileBlobStore, InMemoryBlobStore, CandidateStore
