from festifind.providers.article.web_scraper_provider import WebScraperProvider

__all__ = ["WebScraperProvider"]
