import io
import struct

import numpy as np
import pytest

from digitnet.core.errors import DatasetFormatError, TruncatedStreamError
from digitnet.data.fixtures import build_fixture, fixture_arrays
from digitnet.data.idx import (
    IMAGE_MAGIC,
    LABEL_MAGIC,
    IdxDataset,
    one_hot,
    read_header,
    read_records,
    write_idx_images,
    write_idx_labels,
)


def _streams(pixels, labels, rows=2, cols=2, image_count=None, label_count=None):
    image_count = len(pixels) if image_count is None else image_count
    label_count = len(labels) if label_count is None else label_count
    images = struct.pack(">IIII", IMAGE_MAGIC, image_count, rows, cols)
    images += bytes(value for image in pixels for value in image)
    labels_bytes = struct.pack(">II", LABEL_MAGIC, label_count) + bytes(labels)
    return io.BytesIO(images), io.BytesIO(labels_bytes)


def test_hand_built_buffer_yields_raw_pixels_and_one_hot_targets():
    images, labels = _streams([[0, 255, 3, 4], [10, 20, 30, 40]], [7, 1])
    header = read_header(images, labels)
    assert (header.image_magic_number, header.image_count) == (IMAGE_MAGIC, 2)
    assert (header.rows_count, header.cols_count) == (2, 2)
    assert (header.label_magic_number, header.label_count) == (LABEL_MAGIC, 2)

    records = list(read_records(images, labels, header))
    assert len(records) == 2
    (first_input, first_target), (second_input, second_target) = records
    assert first_input.tolist() == [0.0, 255.0, 3.0, 4.0]
    assert second_input.tolist() == [10.0, 20.0, 30.0, 40.0]
    assert first_target.tolist() == one_hot(7).tolist()
    assert int(np.argmax(second_target)) == 1
    assert second_target.sum() == 1.0


def test_read_records_is_lazy_and_honours_limit():
    images, labels = _streams([[1, 1, 1, 1]] * 3, [0, 1, 2])
    header = read_header(images, labels)
    records = read_records(images, labels, header, limit=2)
    assert images.tell() == 16
    assert len(list(records)) == 2


def test_record_count_is_min_of_header_counts():
    images, labels = _streams([[1, 2, 3, 4]] * 3, [4, 5])
    header = read_header(images, labels)
    assert header.record_count == 2
    assert len(list(read_records(images, labels, header))) == 2


def test_truncated_image_stream_raises():
    images, labels = _streams([[1, 2, 3, 4], [5, 6]], [0, 1], image_count=2)
    header = read_header(images, labels)
    records = read_records(images, labels, header)
    next(records)
    with pytest.raises(TruncatedStreamError) as info:
        next(records)
    assert isinstance(info.value, EOFError)


def test_header_promising_more_labels_than_present_raises():
    images, labels = _streams([[1, 2, 3, 4]] * 2, [3], label_count=2)
    header = read_header(images, labels)
    with pytest.raises(TruncatedStreamError):
        list(read_records(images, labels, header))


def test_truncated_header_raises():
    with pytest.raises(TruncatedStreamError):
        read_header(io.BytesIO(b"\x00\x00\x08\x03"), io.BytesIO(b""))


def test_out_of_range_label_is_a_format_error():
    images, labels = _streams([[1, 2, 3, 4]], [12])
    header = read_header(images, labels)
    with pytest.raises(DatasetFormatError):
        list(read_records(images, labels, header))


def test_dataset_iteration_restarts_from_fresh_handles(tmp_path):
    pixels = np.arange(3 * 6, dtype=np.uint8).reshape(3, 6)
    images_path = write_idx_images(tmp_path / "images", pixels, rows=2, cols=3)
    labels_path = write_idx_labels(tmp_path / "labels", [9, 0, 4])
    dataset = IdxDataset(images_path, labels_path)

    assert len(dataset) == 3
    assert dataset.header.pixels_per_image == 6
    first = [(x.tolist(), int(np.argmax(t))) for x, t in dataset]
    second = [(x.tolist(), int(np.argmax(t))) for x, t in dataset]
    assert first == second
    assert [label for _, label in first] == [9, 0, 4]
    assert first[2][0] == [12.0, 13.0, 14.0, 15.0, 16.0, 17.0]

    partial = dataset.records()
    next(partial)
    inputs, targets = dataset.load(limit=2)
    assert len(inputs) == len(targets) == 2
    assert inputs[0].tolist() == first[0][0]


def test_missing_dataset_file_is_an_io_error(tmp_path):
    labels_path = write_idx_labels(tmp_path / "labels", [1])
    with pytest.raises(FileNotFoundError):
        IdxDataset(tmp_path / "nope", labels_path)


def test_writers_reject_values_outside_a_byte(tmp_path):
    with pytest.raises(DatasetFormatError):
        write_idx_images(tmp_path / "images", [[0, 256]], rows=1, cols=2)
    with pytest.raises(DatasetFormatError):
        write_idx_labels(tmp_path / "labels", [-1])


def test_fixture_is_deterministic_and_balanced(tmp_path):
    images, labels = fixture_arrays(count=40, rows=4, cols=5, seed=3)
    again, _ = fixture_arrays(count=40, rows=4, cols=5, seed=3)
    assert np.array_equal(images, again)
    assert images.shape == (40, 20)
    assert np.bincount(labels).tolist() == [4] * 10

    images_path, labels_path = build_fixture(tmp_path, count=40, rows=4, cols=5, seed=3)
    dataset = IdxDataset(images_path, labels_path)
    inputs, targets = dataset.load()
    assert len(inputs) == 40
    assert inputs[0].max() <= 255.0
    assert [int(np.argmax(t)) for t in targets[:10]] == list(range(10))
