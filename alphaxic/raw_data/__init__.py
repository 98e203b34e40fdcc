from alphaxic.raw_data.alpharaw_wrapper import (
    AlphaRawReader,
    SpectrumDataFrameReader,
    get_raw_reader,
)
from alphaxic.raw_data.interface import RawReader
from alphaxic.raw_data.scan_index import ScanIndex, ScanRecord
