"""
Pipeline assembly for formula-driven GLMs.

Two topologies:
- plain: ``formula -> glm``
- binomial: ``formula -> glm -> prob_to_pred -> index_to_label``, where the
  GLM writes a probability, the threshold stage rounds it to a label index,
  and the last stage maps the index back to the original label

Each variant owns its stage list and the columns its ``transform`` drops.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from typing import ClassVar

import pandas as pd
from sklearn.pipeline import Pipeline

from ..common.errors import SchemaMismatchError
from ..common.protocols import EncoderModelProtocol, GlmStageProtocol
from ..common.threshold import ProbabilityToPrediction
from ..features.labels import IndexToLabel

PREDICTED_LABEL_PROB_COL = 'pred_label_prob'
PREDICTED_LABEL_INDEX_COL = 'pred_label_idx'
PREDICTED_LABEL_COL = 'prediction'

FORMULA_STEP = 'formula'
GLM_STEP = 'glm'
PROB_TO_PRED_STEP = 'prob_to_pred'
INDEX_TO_LABEL_STEP = 'index_to_label'


@dataclass(frozen=True)
class PlainGlmPipeline:
    """Fitted ``formula -> glm`` pipeline."""

    model: Pipeline
    kind: ClassVar[str] = 'plain'
    output_columns: ClassVar[tuple[str, ...]] = (PREDICTED_LABEL_COL,)

    @classmethod
    def check_output_columns(cls, columns: Collection[str]) -> None:
        """Raise if a dataset already holds a column this variant writes."""
        taken = [c for c in cls.output_columns if c in columns]
        if taken:
            raise SchemaMismatchError(f'Output columns already exist in dataset: {taken}')

    @property
    def formula(self) -> EncoderModelProtocol:
        return self.model.named_steps[FORMULA_STEP]

    @property
    def glm(self) -> GlmStageProtocol:
        return self.model.named_steps[GLM_STEP]

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.model.steps)

    def drop_columns(self) -> list[str]:
        return [self.glm.features_col]

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        self.check_output_columns(X.columns)
        return self.model.transform(X).drop(columns=self.drop_columns(), errors='ignore')


@dataclass(frozen=True)
class BinomialGlmPipeline(PlainGlmPipeline):
    """Fitted ``formula -> glm -> prob_to_pred -> index_to_label`` pipeline."""

    kind: ClassVar[str] = 'binomial'
    output_columns: ClassVar[tuple[str, ...]] = (
        PREDICTED_LABEL_PROB_COL,
        PREDICTED_LABEL_INDEX_COL,
        PREDICTED_LABEL_COL,
    )

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(self.model.named_steps[INDEX_TO_LABEL_STEP].labels)

    def drop_columns(self) -> list[str]:
        return [
            PREDICTED_LABEL_PROB_COL,
            PREDICTED_LABEL_INDEX_COL,
            self.glm.features_col,
            self.glm.label_col,
        ]


GlmPipeline = PlainGlmPipeline | BinomialGlmPipeline


def pipeline_variant(family: str) -> type[PlainGlmPipeline]:
    """Return the pipeline variant used for ``family``."""
    return BinomialGlmPipeline if family == 'binomial' else PlainGlmPipeline


def build_pipeline(
    encoder_model: EncoderModelProtocol,
    glm: GlmStageProtocol,
    family: str,
) -> Pipeline:
    """Return the unfitted stage sequence for ``family``."""
    if family == 'binomial':
        if not encoder_model.labels_:
            raise ValueError('Binomial pipelines need an indexed label')
        glm.set_params(prediction_col=PREDICTED_LABEL_PROB_COL)
        return Pipeline(
            [
                (FORMULA_STEP, encoder_model),
                (GLM_STEP, glm),
                (
                    PROB_TO_PRED_STEP,
                    ProbabilityToPrediction(
                        input_col=PREDICTED_LABEL_PROB_COL,
                        output_col=PREDICTED_LABEL_INDEX_COL,
                    ),
                ),
                (
                    INDEX_TO_LABEL_STEP,
                    IndexToLabel(
                        input_col=PREDICTED_LABEL_INDEX_COL,
                        output_col=PREDICTED_LABEL_COL,
                        labels=tuple(encoder_model.labels_),
                    ),
                ),
            ]
        )
    return Pipeline([(FORMULA_STEP, encoder_model), (GLM_STEP, glm)])


def wrap_pipeline(model: Pipeline) -> GlmPipeline:
    """Tag a fitted pipeline with its variant, based on its step names."""
    if INDEX_TO_LABEL_STEP in model.named_steps:
        return BinomialGlmPipeline(model)
    return PlainGlmPipeline(model)
