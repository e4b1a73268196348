"""Domain logic for agenda_lite: event filtering and the collection pipeline."""
