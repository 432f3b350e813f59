import numpy as np
import pytest

from linmat import (
    DenseMatrix,
    DimensionMismatch,
    DivideByZero,
    IndexOutOfBounds,
    InvalidShape,
    SingularMatrix,
    SparseMatrix,
)


def make_simple():
    return DenseMatrix([[1, 2, 3], [4, 5, 6]], (2, 3))


def test_construct_from_flat_and_nested():
    flat = DenseMatrix([1.0, 2.0, 3.0, 4.0], (2, 2))
    nested = DenseMatrix([[1.0, 2.0], [3.0, 4.0]], (2, 2))
    assert flat.shape == (2, 2)
    assert flat.dtype == np.float64
    assert flat.data.shape == (4,)
    np.testing.assert_array_equal(flat.data, nested.data)


def test_construct_infers_integer_dtype():
    A = make_simple()
    assert A.dtype == np.int64
    assert DenseMatrix([True, False], (1, 2)).dtype == np.int64
    assert DenseMatrix(np.ones(4, dtype=np.float32), (2, 2)).dtype == np.float32


def test_construct_rejects_wrong_buffer_length():
    with pytest.raises(InvalidShape):
        DenseMatrix([1, 2, 3], (2, 2))


def test_construct_rejects_empty_dimension():
    with pytest.raises(InvalidShape):
        DenseMatrix([], (0, 4))


def test_construct_rejects_unsupported_types():
    with pytest.raises(TypeError):
        DenseMatrix([1 + 2j], (1, 1))
    with pytest.raises(TypeError):
        DenseMatrix([1], (1, 1), dtype=np.uint8)


def test_from_array():
    arr = np.arange(6, dtype=np.float32).reshape(2, 3)
    A = DenseMatrix.from_array(arr)
    assert A.shape == (2, 3)
    assert A.dtype == np.float32
    np.testing.assert_array_equal(A.toarray(), arr)
    with pytest.raises(InvalidShape):
        DenseMatrix.from_array(np.arange(3))


def test_constructors():
    Z = DenseMatrix.zeros((2, 3))
    O = DenseMatrix.ones((2, 3), dtype=np.int32)
    F = DenseMatrix.full(7, (3, 1))
    I = DenseMatrix.eye(3, dtype=np.int16)
    assert Z.nnz == 0
    assert O.dtype == np.int32 and O.sum() == 6
    assert F.dtype == np.int64 and F.tolist() == [[7], [7], [7]]
    assert DenseMatrix.init(0.5, (1, 2)).tolist() == [[0.5, 0.5]]
    assert I.dtype == np.int16
    np.testing.assert_array_equal(I.toarray(), np.eye(3))
    assert DenseMatrix.zeros_like(O).shape == (2, 3)
    assert DenseMatrix.ones_like(Z).sum() == 6.0
    assert DenseMatrix.eye_like(Z).shape == (2, 2)
    assert DenseMatrix.identity(2).equals(DenseMatrix.eye(2))


def test_random_is_reproducible_and_in_range():
    a = DenseMatrix.random((4, 5), low=-2.0, high=3.0, seed=0)
    b = DenseMatrix.random((4, 5), low=-2.0, high=3.0, seed=0)
    assert a.equals(b)
    assert a.min() >= -2.0 and a.max() < 3.0
    ints = DenseMatrix.random((3, 4), low=0, high=10, dtype=np.int32, seed=1)
    assert ints.dtype == np.int32
    assert ints.min() >= 0 and ints.max() < 10


def test_access():
    A = make_simple()
    assert A.at(1, 2) == 6
    assert A[0, 1] == 2
    assert A.get(1, 0) == 4
    assert A.get(2, 0) is None
    np.testing.assert_array_equal(A[1], np.array([4, 5, 6]))
    np.testing.assert_array_equal(A.col(1), np.array([2, 5]))
    with pytest.raises(IndexOutOfBounds):
        A.at(2, 0)
    with pytest.raises(IndexError):
        A[0, 3]


def test_set_in_place():
    A = make_simple()
    A.set(9, (0, 0))
    assert A.at(0, 0) == 9
    row = A.row(0)
    row[0] = 100
    assert A.at(0, 0) == 9
    with pytest.raises(IndexOutOfBounds):
        A.set(1, (5, 5))


def test_elementwise_ops():
    A = DenseMatrix([[2.0, 4.0], [6.0, 8.0]], (2, 2))
    B = DenseMatrix([[1.0, 2.0], [2.0, 4.0]], (2, 2))
    np.testing.assert_array_equal((A + B).toarray(), [[3.0, 6.0], [8.0, 12.0]])
    np.testing.assert_array_equal((A - B).toarray(), [[1.0, 2.0], [4.0, 4.0]])
    np.testing.assert_array_equal((A * B).toarray(), [[2.0, 8.0], [12.0, 32.0]])
    np.testing.assert_array_equal((A / B).toarray(), [[2.0, 2.0], [3.0, 2.0]])
    np.testing.assert_array_equal((-A).toarray(), -A.toarray())


def test_elementwise_with_sparse_operand():
    A = DenseMatrix([[1.0, 2.0], [3.0, 4.0]], (2, 2))
    S = SparseMatrix({(0, 0): 10.0}, (2, 2))
    C = A.add(S)
    assert isinstance(C, DenseMatrix)
    assert C.tolist() == [[11.0, 2.0], [3.0, 4.0]]


def test_elementwise_shape_mismatch():
    A = make_simple()
    with pytest.raises(DimensionMismatch):
        A + A.T


def test_division_by_zero():
    A = DenseMatrix([[1.0, 2.0]], (1, 2))
    B = DenseMatrix([[1.0, 0.0]], (1, 2))
    with pytest.raises(DivideByZero):
        A / B
    with pytest.raises(ZeroDivisionError):
        A.div_val(0)


def test_integer_division_truncates():
    A = DenseMatrix([-7, 7, -8, 9], (2, 2))
    assert (A / 2).tolist() == [[-3, 3], [-4, 4]]
    assert (A / 2).dtype == np.int64


def test_scalar_ops_and_promotion():
    A = make_simple()
    assert (A + 1).tolist() == [[2, 3, 4], [5, 6, 7]]
    assert (1 + A).tolist() == (A + 1).tolist()
    assert (10 - A).tolist() == [[9, 8, 7], [6, 5, 4]]
    assert (A - 1).tolist() == [[0, 1, 2], [3, 4, 5]]
    assert (2 * A).tolist() == [[2, 4, 6], [8, 10, 12]]
    half = A * 2.5
    assert half.dtype == np.float64
    assert half.at(0, 0) == 2.5
    F = DenseMatrix.ones((2, 2), dtype=np.float32)
    assert (F * 2).dtype == np.float32
    assert (F / 4).dtype == np.float32


def test_reductions():
    A = DenseMatrix([[1, 2], [3, 4]], (2, 2))
    assert A.sum() == 10
    assert A.max() == 4
    assert A.min() == 1
    assert A.mean() == pytest.approx(2.5)
    assert DenseMatrix([[0.0, 1.0], [0.0, 0.0]], (2, 2)).sparsity() == pytest.approx(0.75)


def test_transpose():
    A = make_simple()
    T = A.transpose()
    assert T.shape == (3, 2)
    np.testing.assert_array_equal(T.toarray(), A.toarray().T)
    assert A.T.equals(T)
    assert T.data.flags["C_CONTIGUOUS"]


def test_copy_and_astype():
    A = make_simple()
    B = A.copy()
    B.set(0, (0, 0))
    assert A.at(0, 0) == 1
    F = A.astype(np.float32)
    assert F.dtype == np.float32
    assert F.equals(A)
    assert F.allclose(A)


def test_to_string_and_print(capsys):
    A = DenseMatrix([[1.0, 2.5], [3.0, 4.0]], (2, 2))
    assert A.to_string(2) == "1.00 2.50\n3.00 4.00"
    assert make_simple().to_string() == "1 2 3\n4 5 6"
    A.print(1)
    assert capsys.readouterr().out == "1.0 2.5\n3.0 4.0\n"
    assert str(A) == A.to_string(3)


def test_repr_and_array_protocol():
    A = make_simple()
    assert repr(A) == "DenseMatrix(shape=(2, 3), dtype=int64, nnz=6)"
    arr = np.asarray(A)
    assert arr.shape == (2, 3)
    assert np.asarray(A, dtype=np.float64).dtype == np.float64


def test_construct_rejects_nested_input_of_another_shape():
    with pytest.raises(InvalidShape):
        DenseMatrix([[1, 2, 3], [4, 5, 6]], (3, 2))
    with pytest.raises(InvalidShape):
        DenseMatrix(np.zeros((1, 4)), (2, 2))
    assert DenseMatrix([1, 2, 3, 4, 5, 6], (3, 2)).shape == (3, 2)


def test_scalar_ops_widen_integer_types():
    A = DenseMatrix([1, 2], (1, 2), dtype=np.int8)
    scaled = A.mul_val(1000)
    assert scaled.dtype == np.int16
    assert scaled.tolist() == [[1000, 2000]]
    assert (A - 200).dtype == np.int16
    assert (A / 1000).dtype == np.int16
    assert (A * 3).dtype == np.int8
    with pytest.raises(OverflowError):
        A * 2**70


def test_axis_reductions():
    A = DenseMatrix([[1, 2, 3], [4, 5, 6]], (2, 3))
    np.testing.assert_array_equal(A.sum(axis=0), np.array([5, 7, 9]))
    np.testing.assert_array_equal(A.sum(axis=1), np.array([6, 15]))
    assert A.prod() == 720
    np.testing.assert_array_equal(A.prod(axis=1), np.array([6, 120]))
    assert A.sum(axis=1).dtype == np.int64
    with pytest.raises(ValueError):
        A.sum(axis=2)


def test_median():
    assert DenseMatrix([1.0, 4.0, 6.0, 5.0], (2, 2)).median() == pytest.approx(4.5)
    assert DenseMatrix([3, 1, 2], (1, 3)).median() == 2.0


def test_cumsum_and_cumprod():
    A = DenseMatrix([[1, 2], [3, 4]], (2, 2))
    flat = A.cumsum()
    assert flat.shape == (1, 4)
    assert flat.tolist() == [[1, 3, 6, 10]]
    assert A.cumsum(axis=0).tolist() == [[1, 2], [4, 6]]
    assert A.cumsum(axis=1).tolist() == [[1, 3], [3, 7]]
    assert A.cumprod().at(0, 3) == 24
    assert A.cumprod(axis=1).tolist() == [[1, 2], [3, 12]]
    F = DenseMatrix.full(10.0, (2, 2), dtype=np.float32)
    assert F.cumsum().at(0, 3) == 40.0
    assert F.cumprod().dtype == np.float32


def test_predicates():
    A = DenseMatrix([[1.0, 60.0, 3.0], [75.0, 20.0, 50.0]], (2, 3))
    assert A.any(lambda x: x >= 50)
    assert not A.any(lambda x: x > 100)
    assert A.all(lambda x: x >= 1)
    assert not A.all(lambda x: x >= 25)
    assert A.count_where(lambda x: x >= 50) == 3
    assert A.sum_where(lambda x: x <= 20) == 24.0
    assert A.sum_where(lambda x: x < 0) == 0.0
    assert A.find(lambda x: x >= 50) == (0, 1)
    assert A.find(lambda x: x > 100) is None
    assert A.find_all(lambda x: x >= 50) == [(0, 1), (1, 0), (1, 2)]
    assert A.find_all(lambda x: (x > 2) & (x < 10)) == [(0, 2)]
    assert A.find_all(lambda x: x > 100) == []


def test_predicate_must_be_elementwise():
    A = DenseMatrix.ones((2, 2))
    with pytest.raises(ValueError):
        A.any(lambda x: True)


def test_set_where():
    A = DenseMatrix.full(2.0, (2, 4))
    A.set_where(lambda x: x == 2.0, 2.3)
    assert A.at(0, 0) == pytest.approx(2.3)
    assert A.all(lambda x: x == A.at(1, 3))


def test_reshape():
    A = DenseMatrix.full(10.5, (2, 3))
    B = A.reshape(3, 2)
    assert B.shape == (3, 2)
    assert A.shape == (2, 3)
    M = DenseMatrix(list(range(6)), (2, 3))
    assert M.reshape(3, 2).tolist() == [[0, 1], [2, 3], [4, 5]]
    with pytest.raises(InvalidShape):
        A.reshape(4, 2)


def test_get_sub_matrix():
    A = DenseMatrix(list(range(16)), (4, 4))
    sub = A.get_sub_matrix((1, 1), (2, 3))
    assert sub.shape == (2, 3)
    assert sub.tolist() == [[5, 6, 7], [9, 10, 11]]
    assert A.get_sub_matrix((3, 3), (1, 1)).tolist() == [[15]]
    with pytest.raises(IndexOutOfBounds):
        A.get_sub_matrix((3, 3), (2, 2))
    with pytest.raises(IndexOutOfBounds):
        A.get_sub_matrix((4, 0), (1, 1))


def test_concat():
    A = DenseMatrix.full(10.5, (4, 4))
    row = DenseMatrix.full(1.0, (1, 4))
    col = DenseMatrix.full(2, (4, 1))
    stacked = A.concat(row, axis=0)
    assert stacked.shape == (5, 4)
    assert stacked.row(4).tolist() == [1.0, 1.0, 1.0, 1.0]
    side = A.concat(col, axis=1)
    assert side.shape == (4, 5)
    assert side.col(4).tolist() == [2.0, 2.0, 2.0, 2.0]
    assert side.dtype == np.float64
    S = SparseMatrix({(0, 0): 7.0}, (1, 4))
    assert A.concat(S).at(4, 0) == 7.0
    with pytest.raises(DimensionMismatch):
        A.concat(col, axis=0)
    with pytest.raises(ValueError):
        A.concat(row, axis=None)


def test_extend_in_place():
    A = DenseMatrix([[1, 2], [3, 4]], (2, 2))
    A.extend(DenseMatrix([[5], [6]], (2, 1)), axis=1)
    assert A.shape == (2, 3)
    assert A.tolist() == [[1, 2, 5], [3, 4, 6]]
    A.extend(DenseMatrix([[0.5, 0.5, 0.5]], (1, 3)))
    assert A.shape == (3, 3)
    assert A.dtype == np.float64
    with pytest.raises(DimensionMismatch):
        A.extend(DenseMatrix.ones((1, 2)))
    assert A.shape == (3, 3)


def test_determinant():
    M = DenseMatrix([1, 3, 5, 9, 1, 3, 1, 7, 4, 3, 9, 7, 5, 2, 0, 9], (4, 4), dtype=np.int32)
    d = M.determinant()
    assert d == -376
    assert isinstance(d, int)
    assert DenseMatrix([[0, 1], [1, 0]], (2, 2)).det() == -1
    assert DenseMatrix([[1, 2], [2, 4]], (2, 2)).det() == 0
    assert DenseMatrix([[7]], (1, 1)).det() == 7
    F = DenseMatrix([[4.0, 7.0], [2.0, 6.0]], (2, 2))
    assert F.det() == pytest.approx(10.0)
    assert isinstance(F.astype(np.float32).det(), np.float32)
    with pytest.raises(DimensionMismatch):
        DenseMatrix.ones((2, 3)).det()


def test_inverse():
    M = DenseMatrix([[4, 7], [2, 6]], (2, 2))
    inv = M.inverse()
    assert inv.dtype == np.float64
    np.testing.assert_allclose(inv.toarray(), [[0.6, -0.7], [-0.2, 0.4]], rtol=1e-12)
    assert (M @ inv).allclose(DenseMatrix.eye(2), atol=1e-12)
    R = DenseMatrix.random((5, 5), seed=3, dtype=np.float32) + DenseMatrix.eye(5, dtype=np.float32) * 5
    assert R.inv().dtype == np.float32
    np.testing.assert_allclose((R @ R.inv()).toarray(), np.eye(5), atol=1e-5)
    with pytest.raises(SingularMatrix):
        DenseMatrix([[1.0, 2.0], [2.0, 4.0]], (2, 2)).inverse()
    with pytest.raises(DimensionMismatch):
        DenseMatrix.ones((2, 3)).inverse()
