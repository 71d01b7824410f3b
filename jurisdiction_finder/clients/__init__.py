"""Client singletons for external API interactions."""
from jurisdiction_finder.clients.perplexity_client import PerplexityClient
from jurisdiction_finder.clients.supabase_client import SupabaseClient
from jurisdiction_finder.clients.sheets_client import SheetsClient

__all__ = ["PerplexityClient", "SupabaseClient", "SheetsClient"]
