"""HTTP and offline collaborators used by assistant sessions."""
