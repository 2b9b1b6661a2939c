"""
@Description: command-line filters, each reads one stream and writes one stream
"""
import click
from functools import wraps
from loguru import logger
from ._setting import settings
from .otherTools import AnnoToolsError, readIdSet
from .transcriptTools import TranscriptTableBuilder, table2bed
from .variantTools import VariantFilter
from .expressionTools import GtexTable, addGtex


def exitOnError(func):
    "report anno_tools errors as click errors: message on stderr, exit status 1"

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AnnoToolsError as err:
            raise click.ClickException(str(err)) from err

    return wrapper


@click.command()
@click.argument("toi", type=click.Choice(sorted(settings.dt_toiTag)))
@click.option("-i", "fh_in", type=click.File("r"), default="-", show_default=True, help="Ensembl gtf")
@click.option("-o", "fh_out", type=click.File("w"), default="-", show_default=True, help="transcript table")
@exitOnError
def gtf2table(toi, fh_in, fh_out):
    """
    one line per transcript of interest (TOI: canon or mane), sorted by chrom and coordinates
    """
    logger.info(f"building {toi} transcript table")
    builder = TranscriptTableBuilder(toi=toi).parseGtf(fh_in)
    builder.writeTable(fh_out)
    logger.info(f"ALL DONE, {len(builder.dt_transcript)} transcripts")


@click.command()
@click.argument("canonical_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-i", "fh_in", type=click.File("r"), default="-", show_default=True, help="Ensembl gtf")
@click.option("-o", "fh_out", type=click.File("w"), default="-", show_default=True, help="transcript table")
@exitOnError
def canonicalTable(canonical_file, fh_in, fh_out):
    """
    one line per transcript listed in CANONICAL_FILE (one ENST per line, may be gzipped)
    """
    logger.info(f"reading canonical transcripts from {canonical_file}")
    st_transcript = readIdSet(canonical_file)
    builder = TranscriptTableBuilder(st_transcript=st_transcript).parseGtf(fh_in)
    builder.writeTable(fh_out)
    logger.info(f"ALL DONE, {len(builder.dt_transcript)} transcripts")


@click.command()
@click.option("-i", "fh_in", type=click.File("r"), default="-", show_default=True, help="transcript table")
@click.option("-o", "fh_out", type=click.File("w"), default="-", show_default=True, help="bed")
@exitOnError
def table2bedCmd(fh_in, fh_out):
    """
    transform a transcript table to bed, one line per exon named $transcript_$exonNum
    """
    n = table2bed(fh_in, fh_out)
    logger.info(f"ALL DONE, {n} exons")


@click.command()
@click.option("-i", "fh_in", type=click.File("r"), default="-", show_default=True, help="variant tsv")
@click.option("-o", "fh_out", type=click.File("w"), default="-", show_default=True, help="filtered tsv")
@click.option("--max_ctrl_hv", type=int, help="max COUNT_NEGCTRL_HV")
@click.option("--max_ctrl_het", type=int, help="max COUNT_NEGCTRL_HET")
@click.option("--min_cohort_hv", type=int, help="min COUNT_$cohort_HV")
@click.option("--min_hr", type=int, help="min COUNT_HR")
@click.option("--no_mod", is_flag=True, help="filter out MODIFIER impacts")
@click.option("--no_low", is_flag=True, help="filter out LOW impacts")
@click.option("--no_pseudo", is_flag=True, help="filter out all *pseudogene biotypes")
@click.option("--no_nmd", is_flag=True, help="filter out nonsense_mediated_decay biotype")
@click.option("--canonical", is_flag=True, help="only keep CANONICAL==YES")
@click.option("--max_af_global", type=float, help="max global allele frequency")
@click.option("--max_af_perPop", "max_af_perPop", type=float, help="max per-population allele frequency")
@click.option("--logtime", is_flag=True, help="log start and end of the run")
@exitOnError
def filterVariants(fh_in, fh_out, logtime, **dt_filter):
    """
    drop variant lines failing any of the requested filters, all disabled by default
    """
    if logtime:
        logger.info("starting to run")
    n = VariantFilter(**dt_filter).run(fh_in, fh_out)
    if logtime:
        logger.info(f"ALL DONE, {n} lines kept")


@click.command()
@click.option("-i", "fh_in", type=click.File("r"), default="-", show_default=True, help="variant tsv")
@click.option("-o", "fh_out", type=click.File("w"), default="-", show_default=True, help="tsv with GTEX columns")
@click.option("--gtex", "gtexPath", type=click.Path(exists=True, dir_okay=False), required=True, help="GTEX TPM file")
@click.option(
    "--favoriteTissues",
    "favoriteTissues",
    default=settings.favoriteTissues,
    show_default=True,
    help="comma-separated tissues of interest",
)
@exitOnError
def addGtexCmd(fh_in, fh_out, gtexPath, favoriteTissues):
    """
    add GTEX expression columns (and favorite tissue ratios) before the HV column
    """
    logger.info("starting to run")
    ls_favorite = [x for x in favoriteTissues.split(",") if x]
    gtex = GtexTable(ls_favorite).load(gtexPath)
    n = addGtex(fh_in, fh_out, gtex)
    logger.info(f"ALL DONE, {n} lines")
