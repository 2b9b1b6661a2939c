import io
import pytest
from .._setting import settings
from ..otherTools import ParseError
from ..variantTools import VariantFilter, _maxAf

LS_TITLE = [
    "POSITION",
    "IMPACT",
    "BIOTYPE",
    "CANONICAL",
    "COUNT_HR",
    "COUNT_infertile_HV",
    "COUNT_NEGCTRL_HV",
    "COUNT_NEGCTRL_HET",
    "COUNT_COMPAT_HV",
    "COUNT_OTHERCAUSE_HV",
] + settings.ls_afGlobal + settings.ls_afPerPop


def makeLine(
    position,
    impact="HIGH",
    biotype="protein_coding",
    canonical="YES",
    hr="50",
    cohortHv="2",
    ctrlHv="0",
    ctrlHet="0",
    af="",
    popmax="",
):
    ls_field = [position, impact, biotype, canonical, hr, cohortHv, ctrlHv, ctrlHet, "0", "0"]
    ls_field += [af] + [""] * (len(settings.ls_afGlobal) - 1)
    ls_field += [popmax] + [""] * (len(settings.ls_afPerPop) - 1)
    return "\t".join(ls_field) + "\n"


def runFilter(ls_line, **dt_filter):
    fh_in = io.StringIO("\t".join(LS_TITLE) + "\n" + "".join(ls_line))
    fh_out = io.StringIO()
    VariantFilter(**dt_filter).run(fh_in, fh_out)
    ls_out = fh_out.getvalue().splitlines()
    return ls_out[0], [x.split("\t")[0] for x in ls_out[1:]]


def test_maxAf():
    assert _maxAf("") == 0
    assert _maxAf("0.01") == 0.01
    assert _maxAf("0.01&0.2&.") == 0.2


def test_noFilter():
    header, ls_kept = runFilter([makeLine("chr1:1"), makeLine("chr1:2", impact="MODIFIER")])
    assert header == "\t".join(LS_TITLE)
    assert ls_kept == ["chr1:1", "chr1:2"]


def test_impactFilters():
    ls_line = [
        makeLine("a", impact="HIGH"),
        makeLine("b", impact="MODIFIER"),
        makeLine("c", impact="LOW"),
        makeLine("d", impact="MODERATE"),
    ]
    assert runFilter(ls_line, no_mod=True)[1] == ["a", "c", "d"]
    header, ls_kept = runFilter(ls_line, no_mod=True, no_low=True)
    assert ls_kept == ["a", "d"]
    assert header.endswith("\tno_mod no_low")


def test_biotypeAndCanonicalFilters():
    ls_line = [
        makeLine("a"),
        makeLine("b", biotype="transcribed_unprocessed_pseudogene"),
        makeLine("c", biotype="nonsense_mediated_decay"),
        makeLine("d", canonical=""),
    ]
    assert runFilter(ls_line, no_pseudo=True)[1] == ["a", "c", "d"]
    assert runFilter(ls_line, no_nmd=True)[1] == ["a", "b", "d"]
    assert runFilter(ls_line, canonical=True)[1] == ["a", "b", "c"]


def test_countFilters():
    ls_line = [
        makeLine("a", ctrlHv="0", ctrlHet="3", cohortHv="2", hr="100"),
        makeLine("b", ctrlHv="1"),
        makeLine("c", ctrlHet="10"),
        makeLine("d", cohortHv="0"),
        makeLine("e", hr="5"),
    ]
    header, ls_kept = runFilter(ls_line, max_ctrl_hv=0, max_ctrl_het=5, min_cohort_hv=1, min_hr=10)
    assert ls_kept == ["a"]
    assert header.endswith("\tmax_ctrl_hv=0 max_ctrl_het=5 min_cohort_hv=1 min_hr=10")


def test_afFilters():
    ls_line = [
        makeLine("a", af="0.001"),
        makeLine("b", af="0.001&0.05"),
        makeLine("c", af=""),
        makeLine("d", popmax="0.2"),
    ]
    assert runFilter(ls_line, max_af_global=0.01)[1] == ["a", "c", "d"]
    header, ls_kept = runFilter(ls_line, max_af_perPop=0.1)
    assert ls_kept == ["a", "b", "c"]
    assert header.endswith("\tmax_af_perPop=0.1")


def test_keptLinesUntouched():
    line = makeLine("chr1:1", af='0.001&"x"')
    fh_in = io.StringIO("\t".join(LS_TITLE) + "\n" + line)
    fh_out = io.StringIO()
    assert VariantFilter(max_af_global=0.5).run(fh_in, fh_out) == 1
    assert fh_out.getvalue().splitlines()[1] == line.rstrip("\n")


def test_chunkedFiltering(monkeypatch):
    monkeypatch.setattr(settings, "filterChunkSize", 2)
    ls_line = [makeLine(str(i), impact="LOW" if i % 3 else "HIGH") for i in range(7)]
    assert runFilter(ls_line, no_low=True)[1] == ["0", "3", "6"]


def test_missingColumn():
    fh_in = io.StringIO("POSITION\tIMPACT\nchr1:1\tHIGH\n")
    with pytest.raises(ParseError, match="BIOTYPE"):
        VariantFilter(no_nmd=True).run(fh_in, io.StringIO())
    fh_in = io.StringIO("POSITION\tIMPACT\nchr1:1\tHIGH\n")
    with pytest.raises(ParseError, match="COUNT_"):
        VariantFilter(min_hr=1).run(fh_in, io.StringIO())


def test_duplicateTitle():
    ls_title = LS_TITLE + ["COUNT_otherCohort_HV"]
    fh_in = io.StringIO("\t".join(ls_title) + "\n")
    with pytest.raises(ParseError, match="defined twice"):
        VariantFilter(min_cohort_hv=1).run(fh_in, io.StringIO())
    # a second cohort column only matters when filtering on counts
    fh_in = io.StringIO("\t".join(ls_title) + "\n")
    VariantFilter(no_mod=True).run(fh_in, io.StringIO())


def test_wrongFieldCount():
    fh_in = io.StringIO("\t".join(LS_TITLE) + "\n" + "chr1:1\tHIGH\n")
    with pytest.raises(ParseError, match="columns"):
        VariantFilter(no_mod=True).run(fh_in, io.StringIO())
