"""Command-line interface for formula_glm."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import pandas as pd
import typer

from ..training import fit_from_config
from ..utils import get_logger, json_log
from ..wrapper import load_wrapper

app = typer.Typer(help='Formula GLM CLI', no_args_is_help=True)

log = get_logger(__name__)


@app.command('fit')
def fit_model(
    config: Annotated[
        Path,
        typer.Option(
            '--config',
            '-c',
            exists=True,
            readable=True,
            help='Path to fit configuration YAML.',
        ),
    ] = Path('configs/glm.yaml'),
    data: Annotated[
        Path | None,
        typer.Option(
            '--data',
            '-d',
            exists=True,
            readable=True,
            help='Optional override for the training CSV.',
        ),
    ] = None,
    formula: Annotated[
        str | None,
        typer.Option('--formula', '-f', help='Optional override for the model formula.'),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            '--output',
            '-o',
            help='Explicit model directory. Defaults to artifacts.output_dir/<run_id>.',
        ),
    ] = None,
) -> None:
    """Fit a GLM and save it."""
    log.info(
        json_log(
            'cli.fit.start',
            component='cli',
            config=str(config),
            data_override=str(data) if data else None,
            formula_override=formula,
        ),
    )
    result = fit_from_config(config, data_path=data, formula=formula, output_dir=output)
    log.info(
        json_log(
            'cli.fit.completed',
            component='cli',
            artifact_dir=result['artifact_dir'],
        ),
    )
    typer.echo(f'Model saved to: {result["artifact_dir"]}')


@app.command('predict')
def predict(
    model: Annotated[
        Path,
        typer.Option('--model', '-m', exists=True, help='Saved model directory.'),
    ],
    data: Annotated[
        Path,
        typer.Option('--data', '-d', exists=True, readable=True, help='CSV to score.'),
    ],
    output: Annotated[
        Path,
        typer.Option('--output', '-o', help='Destination CSV for predictions.'),
    ],
) -> None:
    """Score a CSV with a saved model."""
    wrapper = load_wrapper(model)
    scored = wrapper.transform(pd.read_csv(data))
    output.parent.mkdir(parents=True, exist_ok=True)
    scored.to_csv(output, index=False)
    log.info(
        json_log(
            'cli.predict.completed',
            component='cli',
            rows=len(scored),
            output=str(output),
        ),
    )
    typer.echo(f'Predictions written to: {output}')


@app.command('summary')
def summary(
    model: Annotated[
        Path,
        typer.Option('--model', '-m', exists=True, help='Saved model directory.'),
    ],
) -> None:
    """Print the coefficient table and fit statistics of a saved model."""
    wrapper = load_wrapper(model)
    typer.echo(f'Family: {wrapper.family} (link: {wrapper.link})')
    typer.echo(wrapper.summary_table().to_string())
    typer.echo('')
    typer.echo(f'Dispersion: {wrapper.dispersion:.6g}')
    typer.echo(
        f'Null deviance: {wrapper.null_deviance:.6g} '
        f'on {wrapper.residual_degree_of_freedom_null} degrees of freedom'
    )
    typer.echo(
        f'Residual deviance: {wrapper.deviance:.6g} '
        f'on {wrapper.residual_degree_of_freedom} degrees of freedom'
    )
    typer.echo(f'AIC: {wrapper.aic:.6g}')
    typer.echo(f'Number of iterations: {wrapper.num_iterations}')


def main() -> None:
    app()


if __name__ == '__main__':
    main()
