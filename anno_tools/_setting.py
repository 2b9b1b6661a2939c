class atConfig:
    """
    config:
        dt_toiTag: attribute literal marking each kind of transcript of interest
        gtfHeaderLines: number of `#!` lines heading an Ensembl gtf
        gtexSkipLines: free-text lines before the GTEX column names
        gtexInsertBefore: GTEX columns are placed just before this column
        favoriteTissues: default comma-separated favorite tissues
        ls_afGlobal: global allele frequency columns, `&`-separated values allowed
        ls_afPerPop: per-population allele frequency columns
        filterChunkSize: lines per chunk when filtering variants
    """

    def __init__(self):
        self.dt_toiTag = {
            "canon": 'tag "Ensembl_canonical";',
            "mane": 'tag "MANE_Select";',
        }
        self.gtfHeaderLines = 5
        self.gtexSkipLines = 4
        self.gtexInsertBefore = "HV"
        self.favoriteTissues = "testis,ovary"
        self.ls_afGlobal = [
            "gnomADe_AF",
            "gnomADg_AF",
            "RegeneronME_ALL_AF",
            "AllofUs_ALL_AF",
            "ALFA_Total_AF",
        ]
        self.ls_afPerPop = ["AllofUs_POPMAX_AF", "dbNSFP_POPMAX_AF"]
        self.filterChunkSize = 10000

    def __str__(self):
        dt_config = {
            "dt_toiTag": self.dt_toiTag,
            "gtfHeaderLines": self.gtfHeaderLines,
            "gtexSkipLines": self.gtexSkipLines,
            "gtexInsertBefore": self.gtexInsertBefore,
            "favoriteTissues": self.favoriteTissues,
            "ls_afGlobal": self.ls_afGlobal,
            "ls_afPerPop": self.ls_afPerPop,
            "filterChunkSize": self.filterChunkSize,
        }
        self._dt_config = dt_config
        return str(self._dt_config)

    def __repr__(self):
        return str(self)


settings = atConfig()
