"""
Services layer - core business logic for The Actual Informer.

1. News provider (news/):
   - Rate-limited NewsData.io client with retry budgets
   - URL/title de-duplication

2. Ingestion (ingestion.py):
   - Per-category and all-category fetches with a daily store cache
   - Fallback to stored articles when the provider is unavailable

3. Processing (processing.py):
   - Text -> image -> audio transformation state machine
   - Per-article lock and resumable stages

4. Transformation (transformation/):
   - LLM rewriting, image generation and speech synthesis clients
"""
