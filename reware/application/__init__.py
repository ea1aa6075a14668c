"""Application layer: ports (protocols) and DTOs shared by views and infrastructure."""
