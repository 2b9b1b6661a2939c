"""
@Description: filter variant TSV files on impacts, biotypes, cohort counts and allele frequencies
"""
import re
import pandas as pd
import numpy as np
from loguru import logger
from typing import Dict, Iterable, List, Optional, TextIO
from ._setting import settings
from .otherTools import ParseError, iterChunks, splitLine

reCohortHv = re.compile(r"^COUNT_(\w+)_HV")


def _maxAf(value: str) -> float:
    "largest of `&`-separated frequencies, empty or non-numeric values count as 0"
    maxAf = 0.0
    for af in value.split("&"):
        try:
            maxAf = max(maxAf, float(af))
        except ValueError:
            continue
    return maxAf


def _toCount(sr: pd.Series) -> pd.Series:
    return pd.to_numeric(sr, errors="coerce").fillna(0)


class VariantFilter(object):
    """
    drop variant lines failing any active filter. Every filter is disabled by default

    Parameters
    ----------
    max_ctrl_hv, max_ctrl_het : Optional[int]
        max COUNT_NEGCTRL_HV / COUNT_NEGCTRL_HET
    min_cohort_hv, min_hr : Optional[int]
        min COUNT_$cohort_HV / COUNT_HR
    no_mod, no_low : bool
        filter out MODIFIER / LOW impacts
    no_pseudo, no_nmd : bool
        filter out *pseudogene / nonsense_mediated_decay biotypes
    canonical : bool
        only keep CANONICAL==YES
    max_af_global : Optional[float]
        max allele frequency in every `settings.ls_afGlobal` column
    max_af_perPop : Optional[float]
        max allele frequency in every `settings.ls_afPerPop` column
    """

    def __init__(
        self,
        max_ctrl_hv: Optional[int] = None,
        max_ctrl_het: Optional[int] = None,
        min_cohort_hv: Optional[int] = None,
        min_hr: Optional[int] = None,
        no_mod: bool = False,
        no_low: bool = False,
        no_pseudo: bool = False,
        no_nmd: bool = False,
        canonical: bool = False,
        max_af_global: Optional[float] = None,
        max_af_perPop: Optional[float] = None,
    ):
        self.max_ctrl_hv = max_ctrl_hv
        self.max_ctrl_het = max_ctrl_het
        self.min_cohort_hv = min_cohort_hv
        self.min_hr = min_hr
        self.no_mod = no_mod
        self.no_low = no_low
        self.no_pseudo = no_pseudo
        self.no_nmd = no_nmd
        self.canonical = canonical
        self.max_af_global = max_af_global
        self.max_af_perPop = max_af_perPop
        self.ls_title: List[str] = []

    @property
    def useCounts(self) -> bool:
        return any(
            x is not None
            for x in [self.max_ctrl_hv, self.max_ctrl_het, self.min_cohort_hv, self.min_hr]
        )

    def getFilterString(self) -> str:
        "active filters, for the header"
        ls_filter = []
        for name in ["max_ctrl_hv", "max_ctrl_het", "min_cohort_hv", "min_hr"]:
            if getattr(self, name) is not None:
                ls_filter.append(f"{name}={getattr(self, name)}")
        for name in ["no_mod", "no_low", "no_pseudo", "no_nmd", "canonical"]:
            if getattr(self, name):
                ls_filter.append(name)
        for name in ["max_af_global", "max_af_perPop"]:
            if getattr(self, name) is not None:
                ls_filter.append(f"{name}={getattr(self, name)}")
        return " ".join(ls_filter)

    def parseHeader(self, header: str) -> str:
        """
        check the header and store column titles, returns the header to print.
        The cohort COUNT_*_HV column is renamed COUNT_COHORT_HV internally
        """
        ls_title = splitLine(header)
        dt_titleIndex: Dict[str, int] = {}
        for i, title in enumerate(ls_title):
            if (
                self.useCounts
                and not any(x in title for x in ["_NEGCTRL_", "_COMPAT_", "_OTHERCAUSE_"])
                and reCohortHv.match(title)
            ):
                title = "COUNT_COHORT_HV"
            if title in dt_titleIndex:
                raise ParseError(f"title {title} defined twice")
            dt_titleIndex[title] = i
        self.ls_title = list(dt_titleIndex.keys())

        ls_needed = []
        if self.useCounts:
            ls_needed += ["COUNT_NEGCTRL_HV", "COUNT_NEGCTRL_HET", "COUNT_COHORT_HV", "COUNT_HR"]
        if self.no_mod or self.no_low:
            ls_needed.append("IMPACT")
        if self.no_pseudo or self.no_nmd:
            ls_needed.append("BIOTYPE")
        if self.canonical:
            ls_needed.append("CANONICAL")
        if self.max_af_global is not None:
            ls_needed += settings.ls_afGlobal
        if self.max_af_perPop is not None:
            ls_needed += settings.ls_afPerPop
        for title in ls_needed:
            if title not in dt_titleIndex:
                raise ParseError(
                    f"title {title} required but missing, some VEP columns changed?"
                )

        header = header.rstrip("\n").rstrip("\r")
        filterString = self.getFilterString()
        if filterString:
            header = f"{header}\t{filterString}"
        return header

    def getMask(self, df: pd.DataFrame) -> pd.Series:
        "True for the rows passing every active filter"
        mask = pd.Series(True, index=df.index)
        if self.canonical:
            mask &= df["CANONICAL"] == "YES"
        if self.no_mod:
            mask &= df["IMPACT"] != "MODIFIER"
        if self.no_low:
            mask &= df["IMPACT"] != "LOW"
        if self.no_pseudo:
            # all pseudogene biotypes end with 'pseudogene'
            mask &= ~df["BIOTYPE"].str.endswith("pseudogene")
        if self.no_nmd:
            mask &= df["BIOTYPE"] != "nonsense_mediated_decay"
        if self.max_ctrl_hv is not None:
            mask &= _toCount(df["COUNT_NEGCTRL_HV"]) <= self.max_ctrl_hv
        if self.max_ctrl_het is not None:
            mask &= _toCount(df["COUNT_NEGCTRL_HET"]) <= self.max_ctrl_het
        if self.min_cohort_hv is not None:
            mask &= _toCount(df["COUNT_COHORT_HV"]) >= self.min_cohort_hv
        if self.min_hr is not None:
            mask &= _toCount(df["COUNT_HR"]) >= self.min_hr
        if self.max_af_global is not None:
            ar_af = np.column_stack([df[x].map(_maxAf) for x in settings.ls_afGlobal])
            mask &= (ar_af <= self.max_af_global).all(axis=1)
        if self.max_af_perPop is not None:
            ar_af = np.column_stack([df[x].map(_maxAf) for x in settings.ls_afPerPop])
            mask &= (ar_af <= self.max_af_perPop).all(axis=1)
        return mask

    def filterLines(self, ls_line: List[str]) -> List[str]:
        "passing lines, untouched"
        ls_row = [splitLine(x) for x in ls_line]
        for line, ls_field in zip(ls_line, ls_row):
            if len(ls_field) != len(self.ls_title):
                raise ParseError(
                    f"line has {len(ls_field)} columns, header has {len(self.ls_title)}:\n{line.rstrip()}"
                )
        df = pd.DataFrame(ls_row, columns=self.ls_title, dtype=str)
        mask = self.getMask(df)
        return [line for line, keep in zip(ls_line, mask) if keep]

    def run(self, fh_in: Iterable[str], fh_out: TextIO) -> int:
        "filter a whole TSV, returns the number of lines kept"
        it = iter(fh_in)
        header = next(it, None)
        if header is None:
            raise ParseError("empty input, expected a header line")
        print(self.parseHeader(header), file=fh_out)
        nIn, nOut = 0, 0
        for ls_line in iterChunks(it, settings.filterChunkSize):
            ls_keep = self.filterLines(ls_line)
            for line in ls_keep:
                print(line.rstrip("\n").rstrip("\r"), file=fh_out)
            nIn += len(ls_line)
            nOut += len(ls_keep)
        logger.debug(f"{nOut} of {nIn} variant lines passed the filters")
        return nOut
