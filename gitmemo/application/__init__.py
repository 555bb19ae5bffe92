"""
Application Layer

This layer contains use cases (application logic) and DTOs (data transfer objects).
It orchestrates domain logic without containing business rules itself.
Store errors are turned into tagged ActionResults here and never cross
this boundary as exceptions.
"""
