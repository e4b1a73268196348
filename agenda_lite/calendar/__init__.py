"""ICS fetching, parsing and recurrence expansion for agenda_lite."""
