"""Search-as-you-type Telegram bot over the PokeAPI catalog."""
