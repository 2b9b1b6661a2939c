"""
@Description: add GTEX per-tissue expression columns to variant TSV files
"""
import numpy as np
import pandas as pd
from loguru import logger
from typing import Dict, Iterable, List, Optional, TextIO
from ._setting import settings
from .otherTools import ConfigError, ParseError, openText, splitLine


def _formatRatio(ratio: float) -> str:
    "2 decimals, a null ratio is printed as 0"
    if not ratio:
        return "0"
    return f"{ratio:.2f}"


class GtexTable(object):
    """
    GTEX TPM values, with the favorite tissue ratios

    Attributes
    ----------
    ls_favorite : List[str]
        favorite tissues, as in the header but with underscores
    ls_tissue : List[str]
        `GTEX_`-prefixed tissue names, in file order
    dt_gene : Dict[str, List[str]]
        ENSG -> ratios, then favorite tissue values, then other tissue values
    """

    def __init__(self, ls_favorite: List[str]):
        if not ls_favorite:
            raise ConfigError(
                "we expect at least one favoriteTissue, just use defaults and ignore them if you don't care"
            )
        self.ls_favorite = ls_favorite
        self.ls_tissue: List[str] = []
        self.ls_favIndex: List[int] = []
        self.dt_gene: Dict[str, List[str]] = {}

    @property
    def ls_newTitle(self) -> List[str]:
        ls_title = [f"GTEX_{x}_RATIO" for x in self.ls_favorite]
        ls_title += [self.ls_tissue[i] for i in self.ls_favIndex]
        ls_title += [x for i, x in enumerate(self.ls_tissue) if i not in self.ls_favIndex]
        return ls_title

    def getValues(self, gene: str) -> List[str]:
        "new column values for `gene`, empty strings for genes without expression data"
        if gene in self.dt_gene:
            return self.dt_gene[gene]
        return [""] * (len(self.ls_favorite) + len(self.ls_tissue))

    def _setTissues(self, ls_rawTissue: List[str]):
        ls_tissue = [x.replace(" ", "_") for x in ls_rawTissue]
        ls_favIndex = []
        for favorite in self.ls_favorite:
            ls_hit = [i for i, x in enumerate(ls_tissue) if x == favorite]
            if len(ls_hit) > 1:
                raise ConfigError(f"found favorite tissue {favorite} twice")
            if not ls_hit:
                raise ConfigError(f"could not find favorite tissue {favorite} column in header")
            ls_favIndex.append(ls_hit[0])
        self.ls_tissue = ["GTEX_" + x for x in ls_tissue]
        self.ls_favIndex = ls_favIndex

    def load(self, path: str) -> "GtexTable":
        """
        parse a GTEX expression file, eg E-MTAB-5214-query-results.tpms.tsv:
        free-text lines, then `Gene ID<TAB>Gene Name<TAB>tissues...`, then one line per gene
        """
        try:
            with openText(path) as fh:
                ls_line = fh.readlines()
        except OSError as err:
            raise ConfigError(f"cannot open gtex file {path} for reading: {err}") from err
        ls_line = ls_line[settings.gtexSkipLines :]
        if not ls_line:
            raise ParseError(f"no GTEX header found in {path}")

        ls_header = splitLine(ls_line[0])
        if ls_header[:2] != ["Gene ID", "Gene Name"]:
            raise ParseError(f"line should be GTEX header but can't parse it:\n{ls_line[0].rstrip()}")
        self._setTissues(ls_header[2:])
        nTissue = len(self.ls_tissue)

        # columns are positional, tissue names may repeat
        df = pd.DataFrame(
            [splitLine(x, nTissue + 2) for x in ls_line[1:]],
            columns=range(nTissue + 2),
            dtype=str,
        )
        ls_dup = df.loc[df[0].duplicated(), 0].tolist()
        if ls_dup:
            raise ParseError(f"ENSG {ls_dup[0]} present twice in GTEX file")

        df_value = df.iloc[:, 2:]
        df_value = df_value.where(df_value != "0", "")
        try:
            df_num = df_value.replace("", np.nan).apply(pd.to_numeric)
        except ValueError as err:
            raise ParseError(f"non-numeric expression value in gtex file {path}: {err}") from err
        sr_sum = df_num.sum(axis=1, skipna=True)

        for ensg, ls_value, sumOfGtex, ls_num in zip(
            df[0], df_value.values.tolist(), sr_sum, df_num.values.tolist()
        ):
            # favExp / averageExp == favExp * nbTissues / sumExp
            if not sumOfGtex:
                raise ParseError(f"Sum of GTEX values is zero for gene {ensg}, impossible?")
            ls_ratio = [
                _formatRatio(ls_num[i] * nTissue / sumOfGtex) if ls_value[i] else ""
                for i in self.ls_favIndex
            ]
            ls_fav = [ls_value[i] for i in self.ls_favIndex]
            ls_other = [x for i, x in enumerate(ls_value) if i not in self.ls_favIndex]
            self.dt_gene[ensg] = ls_ratio + ls_fav + ls_other
        logger.debug(f"GTEX data loaded for {len(self.dt_gene)} genes and {nTissue} tissues")
        return self


def addGtex(
    fh_in: Iterable[str],
    fh_out: TextIO,
    gtex: GtexTable,
    insertBefore: Optional[str] = None,
) -> int:
    """
    insert the GTEX columns of `gtex` before the `insertBefore` column,
    matching lines on their (single) ENSG in the Gene column.
    returns the number of data lines
    """
    if insertBefore is None:
        insertBefore = settings.gtexInsertBefore
    it = iter(fh_in)
    header = next(it, None)
    if header is None:
        raise ParseError("empty input, expected a header line")
    ls_header = splitLine(header)
    if insertBefore not in ls_header:
        raise ParseError(
            f"could not find insertBefore=={insertBefore} in column headers of infile:\n{header.rstrip()}"
        )
    if "Gene" not in ls_header:
        raise ParseError(f"could not find Gene field in column headers:\n{header.rstrip()}")
    insertIndex = ls_header.index(insertBefore)
    geneIndex = ls_header.index("Gene")

    ls_newHeader = ls_header[:insertIndex] + gtex.ls_newTitle + ls_header[insertIndex:]
    print("\t".join(ls_newHeader), file=fh_out)

    n = 0
    for line in it:
        ls_field = splitLine(line)
        if len(ls_field) <= max(insertIndex, geneIndex):
            raise ParseError(f"line has too few columns:\n{line.rstrip()}")
        gene = ls_field[geneIndex]
        if "," in gene:
            raise ParseError(f"line in inFile has several Genes, shouldn't happen:\n{line.rstrip()}")
        ls_out = ls_field[:insertIndex] + gtex.getValues(gene) + ls_field[insertIndex:]
        print("\t".join(ls_out), file=fh_out)
        n += 1
    return n
