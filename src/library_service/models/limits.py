"""Length limits shared by the models, the schema and the services."""

# Longest user name, book title or author the store accepts
NAME_MAX_LENGTH = 255
