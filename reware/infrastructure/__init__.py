"""Infrastructure: Firebase (Firestore + Identity Toolkit) and in-memory backends."""
