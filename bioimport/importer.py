"""The import call: from a file path to displayed image stacks."""

import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set

from bioimport.calibration import calibration_for
from bioimport.channels import split_stack
from bioimport.collaborators import (
    CollectingDisplay,
    DefaultPrompter,
    Display,
    ErrorReporter,
    LoggingErrorReporter,
    LoggingMetadataDisplay,
    LoggingStatus,
    MetadataDisplay,
    Preferences,
    Prompter,
    RateLimiter,
    Status,
)
from bioimport.exceptions import BioImportError, DecodeFailure
from bioimport.models import (
    ImageProduct,
    ImportOptions,
    ImportResult,
    PlaneSelection,
    SeriesDescriptor,
)
from bioimport.planes import PlaneDecoder
from bioimport.prefs import MemoryPreferences
from bioimport.readers import apply_deferred_rgb, build_chain, open_reader
from bioimport.rgb import merge_channel_stacks, merge_rgb
from bioimport.selection import (
    default_inclusion,
    needs_range,
    resolve_selections,
)
from bioimport.series import describe_series, metadata_table
from bioimport.stacks import StackAssembler

logger = logging.getLogger(__name__)

ERROR_TITLE = "Bio-Formats Import"


class _Canceled(Exception):
    pass


class Importer:
    """Runs import calls against a set of collaborators.

    Each :meth:`run` resolves one file, builds its reader chain, reads the
    chosen planes of the chosen series and hands the resulting stacks to the
    display. The chain is closed once at the end of the call whatever happens.

    Args:
        prompter: Supplies the path, options, series and plane ranges
        display: Receives every finished :class:`ImageProduct`
        metadata_display: Receives the metadata table when requested
        preferences: Persisted defaults for the import options
        status: Receives status text and progress fractions
        errors: Receives user-facing error messages
        resolver: Opens the base reader for a path
    """

    def __init__(
        self,
        prompter: Optional[Prompter] = None,
        display: Optional[Display] = None,
        metadata_display: Optional[MetadataDisplay] = None,
        preferences: Optional[Preferences] = None,
        status: Optional[Status] = None,
        errors: Optional[ErrorReporter] = None,
        resolver: Callable = open_reader,
    ):
        self.prompter = prompter or DefaultPrompter()
        self.display = display or CollectingDisplay()
        self.metadata_display = metadata_display or LoggingMetadataDisplay()
        self.preferences = preferences if preferences is not None else MemoryPreferences()
        self.status = status or LoggingStatus()
        self.errors = errors or LoggingErrorReporter()
        self.resolver = resolver

    def run(self, path: Optional[str] = None, quiet: bool = False) -> ImportResult:
        """Import ``path``, or whatever the prompter chooses when it is ``None``.

        Failures are reported through the error collaborator (only logged when
        ``quiet``) and returned in :attr:`ImportResult.error`; products shown
        before a failure stay in the result.
        """
        result = ImportResult()

        path = self.prompter.choose_source(path)
        if path is None:
            result.canceled = True
            return result

        try:
            reader = self.resolver(path)
        except BioImportError as e:
            self._fail(result, e, quiet)
            return result

        chain = reader
        try:
            defaults = ImportOptions.from_preferences(self.preferences)
            options = self.prompter.choose_options(defaults)
            if options is None:
                raise _Canceled()

            file_name = Path(path).name
            self.status.show_status(f"Analyzing {file_name}")
            try:
                chain = build_chain(reader, options)
                chain, deferred = apply_deferred_rgb(chain, options)
                descriptors = describe_series(chain)
                selections = self._select(descriptors, options)

                if options.show_metadata:
                    self.metadata_display.show_metadata(
                        f"Metadata - {file_name}", metadata_table(chain)
                    )

                self.status.show_status(f"Reading {file_name}")
                for selection in selections:
                    descriptor = descriptors[selection.series_index]
                    for product in self._read_series(
                        chain, descriptor, selection, options, deferred, file_name,
                        len(descriptors),
                    ):
                        self.display.show(product)
                        result.products.append(product)
            except (BioImportError, _Canceled):
                raise
            except Exception as e:
                logger.exception(f"Failed to import {path}")
                raise DecodeFailure(str(e) or None) from e

            for key, value in options.to_preferences().items():
                self.preferences.set(key, value)
            self.preferences.save()
            result.success = True
        except _Canceled:
            logger.info(f"Import of {path} canceled")
            result.canceled = True
        except BioImportError as e:
            self.status.show_status("")
            self._fail(result, e, quiet)
        finally:
            chain.close()
        return result

    def _select(
        self, descriptors: Sequence[SeriesDescriptor], options: ImportOptions
    ) -> List[PlaneSelection]:
        include = default_inclusion(len(descriptors))
        if len(descriptors) > 1:
            include = self.prompter.choose_series(descriptors, include)
            if include is None:
                raise _Canceled()

        ranges = None
        if options.specify_ranges and needs_range(descriptors, include):
            defaults = [(1, d.plane_count, 1) for d in descriptors]
            ranges = self.prompter.choose_ranges(descriptors, include, defaults)
            if ranges is None:
                raise _Canceled()
        return resolve_selections(descriptors, include, ranges)

    def _read_series(
        self,
        chain,
        descriptor: SeriesDescriptor,
        selection: PlaneSelection,
        options: ImportOptions,
        deferred: Set[int],
        file_name: str,
        series_count: int,
    ) -> List[ImageProduct]:
        index = descriptor.index
        chain.set_series(index)
        image_name = file_name
        if descriptor.name:
            image_name += f" - {descriptor.name}"

        decoder = PlaneDecoder(chain, descriptor, deferred_rgb_merge=index in deferred)
        assembler = StackAssembler(image_name)
        limiter = RateLimiter()
        where = f"series {index + 1}, " if series_count > 1 else ""
        total = selection.count

        start = time.monotonic()
        for q, j in enumerate(selection.indices()):
            if limiter.ready():
                self.status.show_status(f"Reading {where}plane {j + 1}/{selection.end + 1}")
            self.status.show_progress(q / total)
            kind, pixels = decoder.read(j)
            assembler.add(j, kind, pixels)

        self.status.show_status("Creating image")
        self.status.show_progress(1.0)

        calibration = calibration_for(chain)
        description = chain.description
        split = not options.merge_channels and options.split_windows
        range_mode = options.specify_ranges and descriptor.plane_count > 1

        products = []
        for stack in assembler.results():
            if split:
                sub_stacks = split_stack(
                    stack,
                    chain,
                    selection if range_mode else None,
                    colorize=options.colorize,
                )
                if decoder.deferred_rgb_merge:
                    products.append(
                        ImageProduct(
                            image_name, merge_channel_stacks(sub_stacks), calibration,
                            description, index,
                        )
                    )
                    continue
                for c, sub in enumerate(sub_stacks):
                    products.append(
                        ImageProduct(
                            f"{image_name} - Ch{c + 1}", sub, calibration, description,
                            index, c,
                        )
                    )
            else:
                if decoder.deferred_rgb_merge:
                    stack = merge_rgb(stack, chain.size_c)
                products.append(
                    ImageProduct(image_name, stack, calibration, description, index)
                )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        self.status.show_status(_timing(elapsed_ms, descriptor.plane_count))
        return products

    def _fail(self, result: ImportResult, error: BioImportError, quiet: bool) -> None:
        result.error = error
        logger.error(f"Import failed: {error.user_message()}")
        if not quiet:
            self.errors.error(ERROR_TITLE, error.user_message())


def _timing(elapsed_ms: int, plane_count: int) -> str:
    text = f"{elapsed_ms / 1000.0} seconds"
    if plane_count > 1:
        text += f" ({elapsed_ms // plane_count} ms per plane)"
    return text
