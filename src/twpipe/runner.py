"""
Pipeline Runner

CLI for training pipeline stages into a model artifact and for
reconstructing them from one.
"""

import logging
from typing import Optional

import click

from .config import load_config, normalize_config, validate_config
from .models.layers import count_parameters
from .pipeline import Pipeline
from .registry.variants import CATALOGS, PARSER, POSTAGGER, STAGES, TOKENIZER
from .utils.alphabet import CATEGORIES, Vocabulary
from .utils.codec import coerce_uint
from .utils.data_utils import load_clusters, load_embeddings, read_conllu
from .utils.model_store import ModelStore


def _setup_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("twpipe").setLevel(level)


@click.command()
@click.option(
    "--config",
    required=True,
    type=str,
    help="Path to the pipeline configuration YAML file"
)
@click.option(
    "--input-file",
    required=True,
    type=str,
    help="Training corpus in CoNLL-U format"
)
@click.option(
    "--model",
    required=False,
    type=str,
    help="Where to write the model artifact (overrides config.model)"
)
@click.option(
    "--cluster",
    required=False,
    type=str,
    help="Brown-cluster file, needed by the *-wcluster postagger variants"
)
@click.option(
    "--embedding",
    required=False,
    type=str,
    help="Pretrained word vectors (word2vec text format) of width config.embedding-dim"
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Detailed logging"
)
def train(config: str, input_file: str, model: Optional[str], cluster: Optional[str],
          embedding: Optional[str], verbose: bool) -> None:
    """
    Build and record every stage marked for training.

    Example:
        twpipe train --config config/postagger.yaml --input-file train.conllu --model model.json
    """
    _setup_logging(verbose)

    print("=" * 70)
    print("TWPIPE TRAINING")
    print("=" * 70)
    print(f"Configuration file: {config}")
    print(f"Input file: {input_file}")

    try:
        print("\n📋 Loading configuration...")
        run_config = load_config(config)
        validate_config(run_config)
        run_config = normalize_config(run_config)

        model_path = model or run_config.get("model")
        if not model_path:
            raise click.UsageError("No model path given (use --model or config.model)")
        print(f"Model artifact: {model_path}")

        print("\n📥 Reading corpus...")
        sentences = list(read_conllu(input_file, show_progress=verbose))
        clusters = load_clusters(cluster) if cluster else None
        vocabulary = Vocabulary.from_sentences(sentences, clusters=clusters)
        print(f"Sentences: {len(sentences)}")
        for category in CATEGORIES:
            print(f"  {category}: {vocabulary.size_of(category)}")

        embeddings = None
        if embedding:
            embedding_dim = coerce_uint(run_config.get("embedding-dim"), field="embedding-dim")
            if embedding_dim == 0:
                raise click.UsageError("--embedding needs a non-zero embedding-dim in the configuration")
            embeddings = load_embeddings(embedding, embedding_dim)
            print(f"Pretrained embeddings: {len(embeddings)} words, {embedding_dim} dimensions")

        pipeline = Pipeline(run_config, ModelStore(model_path), vocabulary, embeddings)
        print(f"\n🚀 Stages to train: {pipeline.stages_to_train()}")
        engines = pipeline.train(sentences)

        print("\n📈 Done!")
        for stage, engine in engines.items():
            print(f"  {stage:<10} - {pipeline.builder(stage).variant.name} ({count_parameters(engine):,} parameters)")
        print(f"\n📁 Model saved to: {model_path}")

    except Exception as e:
        print(f"\n❌ Training failed: {str(e)}")
        raise


@click.command()
@click.option(
    "--model",
    required=True,
    type=str,
    help="Model artifact to load"
)
@click.option("--tokenize", is_flag=True, default=False, help="Load the tokenizer")
@click.option("--postag", is_flag=True, default=False, help="Load the postagger (and tokenizer)")
@click.option("--parse", is_flag=True, default=False, help="Load the parser (and earlier stages)")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Detailed logging"
)
def load(model: str, tokenize: bool, postag: bool, parse: bool, verbose: bool) -> None:
    """Reconstruct stages from a model artifact and print their architecture."""
    _setup_logging(verbose)

    requested = [stage for stage, flag in ((TOKENIZER, tokenize), (POSTAGGER, postag), (PARSER, parse)) if flag]

    try:
        store = ModelStore.load(model)
        if not requested:
            requested = [stage for stage in STAGES if store.has_stage(stage)]
        pipeline = Pipeline({}, store)
        engines = pipeline.load(requested)

        print(f"Model artifact: {model}")
        print(f"Vocabulary: {pipeline.vocabulary}")
        for stage, engine in engines.items():
            summary = pipeline.builder(stage).describe()
            print(f"\n🔧 {stage.upper()}: {summary['name']} ({count_parameters(engine):,} parameters)")
            for field, value in summary["hyperparams"].items():
                print(f"  {field:<20} {value}")

    except Exception as e:
        print(f"\n❌ Loading failed: {str(e)}")
        raise


@click.command()
@click.option(
    "--stage",
    type=click.Choice(list(STAGES) + ["all"]),
    default="all",
    help="Which stage to list variants for"
)
def list_variants(stage: str) -> None:
    """List the available variants of each stage."""
    print("Available Variants")
    print("=" * 50)

    for name in STAGES:
        if stage not in (name, "all"):
            continue
        catalog = CATALOGS[name]
        print(f"\n🔧 {name.upper()}:")
        for descriptor in catalog.values():
            print(f"  {descriptor.name:<20} - {descriptor.description}")


# Create CLI group
@click.group()
def cli():
    """Tokenizer, postagger and parser pipeline"""
    pass


# Add commands to group
cli.add_command(train, name="train")
cli.add_command(load, name="load")
cli.add_command(list_variants, name="list")

if __name__ == '__main__':
    cli()
