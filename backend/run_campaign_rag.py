"""
Command-line entry point: ingest a campaign folder or ask a question.

    python run_campaign_rag.py ingest ./campaigns
    python run_campaign_rag.py ask "Which launch videos use storytelling?" --campaign brand_launch
"""
import argparse
import logging
import sys

from creative_rag.config import get_settings
from creative_rag.database import SessionLocal
from creative_rag.exceptions import CampaignRAGError
from creative_rag.schemas import QueryFilters
from creative_rag.services.completion_service import CompletionService
from creative_rag.services.document_source import LocalFolderDocumentSource
from creative_rag.services.embedding_service import EmbeddingService
from creative_rag.services.orchestrator import CampaignOrchestrator
from creative_rag.services.persistence import CampaignRepository


def build_orchestrator(with_completion: bool) -> CampaignOrchestrator:
    settings = get_settings()
    completion_service = CompletionService.from_settings(settings) if with_completion else None
    return CampaignOrchestrator(
        source=LocalFolderDocumentSource(),
        repository=CampaignRepository(SessionLocal),
        embedding_service=EmbeddingService.from_settings(settings),
        settings=settings,
        completion_service=completion_service,
    )


def ingest(args) -> int:
    orchestrator = build_orchestrator(with_completion=False)
    summary = orchestrator.process_campaign_source(args.folder)

    print("=" * 80)
    print(f"Run {summary.run_id}: {summary.state.value}")
    print(f"   Processed: {summary.processed_count}")
    print(f"   Errors:    {summary.error_count}")
    for error in summary.per_document_errors:
        print(f"   ⚠️  {error.filename or error.document_id}: {error.error_type}: {error.message}")
    print("=" * 80)
    return 0 if summary.error_count == 0 else 2


def ask(args) -> int:
    orchestrator = build_orchestrator(with_completion=True)
    filters = QueryFilters(
        campaign=args.campaign,
        client=args.client,
        creative_feature=args.feature,
        business_outcome=args.outcome,
    )
    result = orchestrator.query_campaign_insights(args.question, filters, args.limit)

    print(result.answer)
    if result.sources:
        print("\nSources:")
        for source in result.sources:
            print(f"   - {source.filename} ({source.campaign_name}) similarity={source.similarity:.3f}")
    return 0


def main():
    parser = argparse.ArgumentParser(description='Creative campaign retrieval and scoring')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    ingest_parser = subparsers.add_parser('ingest', help='Analyze and index every file under a folder')
    ingest_parser.add_argument('folder', help='Folder laid out as <client>/<campaign>/<files>')
    ingest_parser.set_defaults(handler=ingest)

    ask_parser = subparsers.add_parser('ask', help='Ask a question about indexed campaigns')
    ask_parser.add_argument('question')
    ask_parser.add_argument('--campaign', help='Only this campaign')
    ask_parser.add_argument('--client', help='Only this client')
    ask_parser.add_argument('--feature', help='Only documents with this creative feature, e.g. detected_storytelling')
    ask_parser.add_argument('--outcome', help='Only documents with this predicted outcome')
    ask_parser.add_argument('--limit', type=int, default=None, help='Number of chunks to retrieve')
    ask_parser.set_defaults(handler=ask)

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        sys.exit(args.handler(args))
    except CampaignRAGError as e:
        print(f"❌ {type(e).__name__}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
