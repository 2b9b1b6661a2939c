"""
@Description: canonical / MANE Select transcript tables from Ensembl gtf, and their BED version
"""
import re
from loguru import logger
from typing import Iterable, Iterator, List, Optional, Set, TextIO, Tuple
from ._setting import settings
from .otherTools import ConfigError, ParseError, splitLine

ls_usedFeature = ["exon", "start_codon", "stop_codon"]
reTranscriptId = re.compile(r'transcript_id "(ENST\d+)";')
reGeneId = re.compile(r'gene_id "([^"]+)";')
reGeneName = re.compile(r'gene_name "([^"]+)";')

dt_chromSortName = {"X": "23", "Y": "24", "M": "25", "MT": "25"}


def normalizeChrom(chrom: str) -> Tuple[int, str]:
    """
    get the sort key and the display name of a gtf chromosome

    X, Y and M/MT sort as 23, 24, 25. Unnumbered sequences (scaffolds) all get
    0, so they come before chr1 and are ordered by coordinates. Display names
    use the chr* convention with chrM.
    """
    if chrom.startswith("chr"):
        chrom = chrom[3:]
    sortName = dt_chromSortName.get(chrom, chrom)
    if sortName.isdigit():
        chromKey = int(sortName)
    else:
        chromKey = 0
    if chrom == "MT":
        chrom = "M"
    return chromKey, "chr" + chrom


def _toInt(value: str, line: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ParseError(f"coordinate {value!r} is not an integer in line:\n{line}")


class Transcript(object):
    """
    everything we accumulate about one transcript while reading the gtf.
    `exonStarts` and `exonEnds` always have the same length and are sorted in
    increasing genomic order whatever the strand
    """

    def __init__(self, transcriptId: str, gene: str, ensg: Optional[str], chrom: str, strand: str):
        self.transcriptId = transcriptId
        self.gene = gene
        self.ensg = ensg
        self.chromKey, self.chrom = normalizeChrom(chrom)
        self.strand = strand
        self.cdsStart: Optional[int] = None
        self.cdsEnd: Optional[int] = None
        self.exonStarts: List[int] = []
        self.exonEnds: List[int] = []

    def __repr__(self):
        return f"Transcript({self.transcriptId}, {self.chrom}:{self.strand}, {len(self.exonStarts)} exons)"

    def addExon(self, start: int, end: int):
        # exons of - strand transcripts come in reverse genomic order
        if self.strand == "+":
            self.exonStarts.append(start)
            self.exonEnds.append(end)
        else:
            self.exonStarts.insert(0, start)
            self.exonEnds.insert(0, end)

    def addStartCodon(self, start: int, end: int):
        if self.strand == "+":
            self.cdsStart = start
        else:
            self.cdsEnd = end

    def addStopCodon(self, start: int, end: int):
        if self.strand == "+":
            self.cdsEnd = end
        else:
            self.cdsStart = start

    def checkExons(self):
        if not self.exonStarts:
            raise ParseError(f"no exon found for {self.transcriptId}")
        if len(self.exonStarts) != len(self.exonEnds):
            raise ParseError(f"exon starts and ends differ in number for {self.transcriptId}")

    def getCds(self) -> Tuple[int, int]:
        """
        CDS bounds, extended to the transcript end when the CDS is incomplete.
        No start nor stop codon means non-coding: (1, 1).

        NOTE: a coding transcript incomplete on both ends also gets (1, 1)
        """
        self.checkExons()
        if self.cdsStart is not None and self.cdsEnd is not None:
            return self.cdsStart, self.cdsEnd
        elif self.cdsStart is not None:
            return self.cdsStart, self.exonEnds[-1]
        elif self.cdsEnd is not None:
            return self.exonStarts[0], self.cdsEnd
        else:
            return 1, 1

    @property
    def sortKey(self) -> tuple:
        "chrom, first exon start, first exon end, all coordinates, transcript id"
        self.checkExons()
        coordString = (
            ",".join(map(str, self.exonStarts))
            + ",__"
            + ",".join(map(str, self.exonEnds))
            + ","
        )
        return (
            self.chromKey,
            self.exonStarts[0],
            self.exonEnds[0],
            coordString,
            self.transcriptId,
        )

    def toRow(self, withEnsg: bool = False) -> List[str]:
        cdsStart, cdsEnd = self.getCds()
        ls_row = [self.transcriptId, self.gene]
        if withEnsg:
            ls_row.append(self.ensg)
        ls_row.extend(
            [
                self.chrom,
                self.strand,
                str(cdsStart),
                str(cdsEnd),
                ",".join(map(str, self.exonStarts)),
                ",".join(map(str, self.exonEnds)),
            ]
        )
        return ls_row


class TranscriptTableBuilder(object):
    """
    build the transcript table from an Ensembl gtf

    Parameters
    ----------
    st_transcript : Optional[Set[str]]
        keep transcripts listed here. Rows come out in gtf order, without ENSG column
    toi : Optional[str]
        keep transcripts whose attributes carry the tag of `toi` (keys of
        `settings.dt_toiTag`). Rows are sorted by chromosome and coordinates,
        with an ENSG column
    """

    def __init__(self, st_transcript: Optional[Set[str]] = None, toi: Optional[str] = None):
        if (st_transcript is None) == (toi is None):
            raise ConfigError("need exactly one of a transcript set or a transcript type")
        if toi is not None and toi not in settings.dt_toiTag:
            raise ConfigError(
                f"unsupported type of transcripts: must be one of {list(settings.dt_toiTag)}, not {toi}"
            )
        self.st_transcript = st_transcript
        self.toiTag = None if toi is None else settings.dt_toiTag[toi]
        self.withEnsg = toi is not None
        self.sortByChrom = toi is not None
        self.dt_transcript = {}

    def skipHeader(self, it: Iterator[str]):
        for _ in range(settings.gtfHeaderLines):
            line = next(it, None)
            if line is None or not line.startswith("#!"):
                raise ParseError(f"skipping header line but it's not a header?\n{line}")

    def _isWanted(self, attr: str, line: str) -> Optional[str]:
        "transcript id if the line belongs to a transcript of interest"
        if self.toiTag is not None and self.toiTag not in attr:
            return None
        match = reTranscriptId.search(attr)
        if not match:
            raise ParseError(f"cannot grab transcript_id from line:\n{line}")
        transcriptId = match.group(1)
        if self.st_transcript is not None and transcriptId not in self.st_transcript:
            return None
        return transcriptId

    def _newTranscript(self, transcriptId: str, ls_field: List[str], line: str) -> Transcript:
        attr = ls_field[8]
        if self.withEnsg:
            match = reGeneId.search(attr)
            if not match:
                raise ParseError(f"cannot grab gene_id from line:\n{line}")
            ensg = match.group(1)
            match = reGeneName.search(attr)
            gene = match.group(1) if match else ensg
        else:
            match = reGeneName.search(attr)
            if not match:
                raise ParseError(f"cannot grab gene_name from line:\n{line}")
            gene = match.group(1)
            ensg = None
        return Transcript(transcriptId, gene, ensg, ls_field[0], ls_field[6])

    def addLine(self, line: str):
        ls_field = splitLine(line, 9)
        feature = ls_field[2]
        if feature not in ls_usedFeature:
            return
        line = line.rstrip("\n")
        transcriptId = self._isWanted(ls_field[8], line)
        if transcriptId is None:
            return

        transcript = self.dt_transcript.get(transcriptId)
        if transcript is None:
            transcript = self._newTranscript(transcriptId, ls_field, line)
            self.dt_transcript[transcriptId] = transcript

        start = _toInt(ls_field[3], line)
        end = _toInt(ls_field[4], line)
        if feature == "exon":
            transcript.addExon(start, end)
        elif feature == "start_codon":
            transcript.addStartCodon(start, end)
        else:
            transcript.addStopCodon(start, end)

    def parseGtf(self, fh: Iterable[str]) -> "TranscriptTableBuilder":
        it = iter(fh)
        self.skipHeader(it)
        for line in it:
            self.addLine(line)
        logger.debug(f"{len(self.dt_transcript)} transcripts of interest found")
        if self.st_transcript is not None:
            # canonical transcripts on ALT sequences are absent from the gtf
            unseen = len(self.st_transcript - self.dt_transcript.keys())
            logger.debug(f"{unseen} listed transcripts never seen in the gtf")
        return self

    def getHeader(self) -> List[str]:
        ls_header = ["TRANSCRIPT", "GENE"]
        if self.withEnsg:
            ls_header.append("ENSG")
        ls_header.extend(
            ["CHROM", "STRAND", "CDS_START", "CDS_END", "EXON_STARTS", "EXON_ENDS"]
        )
        return ls_header

    def iterTranscripts(self) -> Iterator[Transcript]:
        if self.sortByChrom:
            yield from sorted(self.dt_transcript.values(), key=lambda x: x.sortKey)
        else:
            yield from self.dt_transcript.values()

    def iterRows(self) -> Iterator[List[str]]:
        for transcript in self.iterTranscripts():
            yield transcript.toRow(self.withEnsg)

    def writeTable(self, fh: TextIO):
        print("\t".join(self.getHeader()), file=fh)
        for ls_row in self.iterRows():
            print("\t".join(ls_row), file=fh)


def iterBedRows(fh: Iterable[str]) -> Iterator[Tuple[str, str, str, str]]:
    """
    one (chrom, start, end, name) per exon of each transcript table row.
    name is `{transcript}_{exonNum}`, exonNum starting at 1 at the 5' end
    """
    it = iter(fh)
    next(it, None)
    for line in it:
        if not line.strip():
            continue
        ls_field = splitLine(line)
        if len(ls_field) < 8:
            raise ParseError(f"transcript table line has too few columns:\n{line.rstrip()}")
        transcript = ls_field[0]
        chrom, strand = ls_field[-6], ls_field[-5]
        ls_start = ls_field[-2].split(",")
        ls_end = ls_field[-1].split(",")
        if len(ls_start) != len(ls_end):
            raise ParseError(f"different numbers of exon starts and ends in:\n{line.rstrip()}")
        exonCounts = len(ls_start)
        for i, (start, end) in enumerate(zip(ls_start, ls_end)):
            exonNum = exonCounts - i if strand == "-" else i + 1
            yield chrom, start, end, f"{transcript}_{exonNum}"


def table2bed(fh_in: Iterable[str], fh_out: TextIO) -> int:
    "write the BED version of a transcript table, returns the number of exons"
    n = 0
    for tp_bed in iterBedRows(fh_in):
        print("\t".join(tp_bed), file=fh_out)
        n += 1
    return n
