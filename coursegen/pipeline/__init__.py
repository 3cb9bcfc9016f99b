"""Document-to-course generation pipeline."""

from coursegen.pipeline.contracts import Chunk, ChunkOutcome, ChunkStatus, Corpus, CourseMetadata, DifficultyLevel, PipelineResult, PipelineStatus, SourceFile
from coursegen.pipeline.orchestrator import CourseOrchestrator
from coursegen.pipeline.policy import PipelinePolicy

__all__ = ["Chunk", "ChunkOutcome", "ChunkStatus", "Corpus", "CourseMetadata", "CourseOrchestrator", "DifficultyLevel", "PipelinePolicy", "PipelineResult", "PipelineStatus", "SourceFile"]
