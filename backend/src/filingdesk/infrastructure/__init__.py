"""Infrastructure adapters for external systems"""
