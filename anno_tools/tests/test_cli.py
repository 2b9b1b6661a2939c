import gzip
from click.testing import CliRunner
from ..cli import addGtexCmd, canonicalTable, filterVariants, gtf2table, table2bedCmd
from ..otherTools import readIdSet
from .test_transcriptTools import HEADER, gtfLine
from .test_expressionTools import GTEX

GTF = "".join(
    HEADER
    + [
        gtfLine("1", "exon", 300, 400, "-", "ENST00000001"),
        gtfLine("1", "start_codon", 350, 352, "-", "ENST00000001"),
        gtfLine("1", "exon", 100, 200, "-", "ENST00000001"),
        gtfLine("1", "stop_codon", 150, 152, "-", "ENST00000001"),
        gtfLine("1", "exon", 10, 20, "+", "ENST00000002", tags=""),
    ]
)


def test_gtf2table():
    result = CliRunner().invoke(gtf2table, ["canon"], input=GTF)
    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "TRANSCRIPT\tGENE\tENSG\tCHROM\tSTRAND\tCDS_START\tCDS_END\tEXON_STARTS\tEXON_ENDS",
        "ENST00000001\tGENE1\tENSG01\tchr1\t-\t150\t352\t100,300\t200,400",
    ]


def test_gtf2tableBadArgument():
    result = CliRunner().invoke(gtf2table, ["refseq"], input=GTF)
    assert result.exit_code != 0


def test_gtf2tableBadLine():
    gtf = GTF + "1\tensembl\texon\t1\t2\t.\t+\t.\n"
    result = CliRunner().invoke(gtf2table, ["canon"], input=gtf)
    assert result.exit_code == 1
    assert "9 columns" in result.output


def test_canonicalTableGzipped(tmp_path):
    path = tmp_path / "canonical.txt.gz"
    with gzip.open(path, "wt") as fh:
        fh.write("ENST00000002\nENST00000003\n")
    assert readIdSet(str(path)) == {"ENST00000002", "ENST00000003"}
    result = CliRunner().invoke(canonicalTable, [str(path)], input=GTF)
    assert result.exit_code == 0
    assert result.output.splitlines()[1:] == ["ENST00000002\tGENE1\tchr1\t+\t1\t1\t10\t20"]


def test_canonicalTableMissingFile(tmp_path):
    result = CliRunner().invoke(canonicalTable, [str(tmp_path / "absent.txt")], input=GTF)
    assert result.exit_code != 0


def test_table2bed(tmp_path):
    tablePath = tmp_path / "table.tsv"
    runner = CliRunner()
    result = runner.invoke(gtf2table, ["canon", "-o", str(tablePath)], input=GTF)
    assert result.exit_code == 0
    result = runner.invoke(table2bedCmd, ["-i", str(tablePath)])
    assert result.exit_code == 0
    assert result.output == "chr1\t100\t200\tENST00000001_2\nchr1\t300\t400\tENST00000001_1\n"


def test_filterVariants():
    tsv = (
        "POSITION\tIMPACT\tBIOTYPE\n"
        "chr1:1\tHIGH\tprotein_coding\n"
        "chr1:2\tLOW\tprotein_coding\n"
        "chr1:3\tHIGH\tnonsense_mediated_decay\n"
    )
    result = CliRunner().invoke(filterVariants, ["--no_low", "--no_nmd", "--logtime"], input=tsv)
    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "POSITION\tIMPACT\tBIOTYPE\tno_low no_nmd",
        "chr1:1\tHIGH\tprotein_coding",
    ]


def test_filterVariantsMissingColumn():
    result = CliRunner().invoke(filterVariants, ["--canonical"], input="POSITION\tIMPACT\n")
    assert result.exit_code == 1
    assert "CANONICAL" in result.output


def test_addGtex(tmp_path):
    gtexPath = tmp_path / "gtex.tsv"
    gtexPath.write_text(GTEX)
    tsv = "POSITION\tGene\tHV\nchr1:10\tENSG01\tS1\n"
    result = CliRunner().invoke(addGtexCmd, ["--gtex", str(gtexPath)], input=tsv)
    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "POSITION\tGene\tGTEX_testis_RATIO\tGTEX_ovary_RATIO\tGTEX_testis\tGTEX_ovary"
        "\tGTEX_adrenal_gland\tGTEX_brain\tHV",
        "chr1:10\tENSG01\t2.00\t0.80\t5\t2\t1\t2\tS1",
    ]
