"""
Layer contract tests.

The dense layer math is checked against torch autograd on float64:
  forward            z = x W + b, a = f(z)
  backpropagate      delta = (delta_next W^T) * f'(z_prev)
  compute_gradient   dW = a^T delta, db = column sum of delta
"""
from __future__ import annotations

import pytest
import torch

from cgraph_fw import ActivationType, CostFunctionType, FullyConnectedLayer, OutputLayer, TensorView
from cgraph_fw.activations import get_activation
from cgraph_fw.backend import get_backend
from cgraph_fw.errors import ShapeMismatchError

from .helpers import dense, output


def _v(t: torch.Tensor) -> TensorView:
    return TensorView(t)


class TestForward:

    def test_forward_matches_affine_then_activation(self):
        layer = dense(3, 2, ActivationType.TANH)
        x = torch.randn(5, 3, dtype=torch.float64)

        z, a = layer.forward(_v(x))

        expected_z = x @ layer.weights + layer.biases
        torch.testing.assert_close(z.t, expected_z)
        torch.testing.assert_close(a.t, torch.tanh(expected_z))
        assert z.owned and a.owned

    def test_forward_does_not_mutate_parameters(self):
        layer = dense(3, 2)
        w0, b0 = layer.weights.clone(), layer.biases.clone()
        layer.forward(_v(torch.randn(4, 3, dtype=torch.float64)))
        assert torch.equal(layer.weights, w0)
        assert torch.equal(layer.biases, b0)

    def test_forward_releases_z_when_activation_fails(self, monkeypatch):
        layer = dense(3, 2)
        bk = get_backend()
        produced = []
        original = bk.multiply_with_sum

        def tracking_multiply_with_sum(x, w, b):
            z = original(x, w, b)
            produced.append(z)
            return z

        def failing_activation(z):
            raise ArithmeticError("bad activation")

        monkeypatch.setattr(bk, "multiply_with_sum", tracking_multiply_with_sum)
        layer.activation = failing_activation
        with pytest.raises(ArithmeticError):
            layer.forward(_v(torch.randn(4, 3, dtype=torch.float64)))
        assert len(produced) == 1
        assert produced[0].released

    def test_forward_shape_mismatch(self):
        layer = dense(3, 2)
        with pytest.raises(ShapeMismatchError) as ei:
            layer.forward(_v(torch.randn(4, 5, dtype=torch.float64)))
        assert ei.value.expected == (3,)
        assert ei.value.actual == (5,)


class TestBackward:

    def test_backpropagate_matches_autograd(self):
        layer = dense(4, 3, ActivationType.RELU)
        z_prev = torch.randn(6, 4, dtype=torch.float64, requires_grad=True)
        g = torch.randn(6, 3, dtype=torch.float64)

        a_prev = torch.sigmoid(z_prev)
        z = a_prev @ layer.weights + layer.biases
        (z * g).sum().backward()

        _, sigmoid_prime = get_activation(ActivationType.SIGMOID)
        delta = layer.backpropagate(_v(g), _v(z_prev.detach()), sigmoid_prime)

        torch.testing.assert_close(delta.t, z_prev.grad)
        assert delta.shape == (6, 4)

    def test_backpropagate_releases_transposed_weights(self, monkeypatch):
        layer = dense(4, 3)
        temporaries = []
        original = TensorView.transpose

        def tracking_transpose(self):
            out = original(self)
            temporaries.append(out)
            return out

        monkeypatch.setattr(TensorView, "transpose", tracking_transpose)
        _, f_prime = get_activation(ActivationType.SIGMOID)
        layer.backpropagate(
            _v(torch.randn(2, 3, dtype=torch.float64)), _v(torch.randn(2, 4, dtype=torch.float64)), f_prime
        )

        assert len(temporaries) == 1
        assert temporaries[0].released

    def test_backpropagate_releases_transposed_weights_on_failure(self, monkeypatch):
        layer = dense(4, 3)
        temporaries = []
        original = TensorView.transpose

        def tracking_transpose(self):
            out = original(self)
            temporaries.append(out)
            return out

        def failing_prime(z):
            raise ArithmeticError("bad derivative")

        monkeypatch.setattr(TensorView, "transpose", tracking_transpose)
        with pytest.raises(ArithmeticError):
            layer.backpropagate(
                _v(torch.randn(2, 3, dtype=torch.float64)), _v(torch.randn(2, 4, dtype=torch.float64)),
                failing_prime,
            )
        assert temporaries[0].released

    def test_backpropagate_shape_mismatch(self):
        layer = dense(4, 3)
        _, f_prime = get_activation(ActivationType.SIGMOID)
        with pytest.raises(ShapeMismatchError):
            layer.backpropagate(_v(torch.randn(2, 5, dtype=torch.float64)), _v(torch.randn(2, 4)), f_prime)
        with pytest.raises(ShapeMismatchError):
            layer.backpropagate(_v(torch.randn(2, 3, dtype=torch.float64)), _v(torch.randn(2, 7)), f_prime)
        with pytest.raises(ShapeMismatchError):
            layer.backpropagate(_v(torch.randn(2, 3, dtype=torch.float64)), _v(torch.randn(3, 4)), f_prime)

    def test_compute_gradient_matches_autograd(self):
        layer = dense(4, 3, ActivationType.TANH)
        w = layer.weights.clone().requires_grad_(True)
        b = layer.biases.clone().requires_grad_(True)
        x = torch.randn(7, 4, dtype=torch.float64)
        g = torch.randn(7, 3, dtype=torch.float64)

        z = x @ w + b
        (torch.tanh(z) * g).sum().backward()

        _, tanh_prime = get_activation(ActivationType.TANH)
        delta = g * tanh_prime(z.detach())
        dJdw, dJdb = layer.compute_gradient(_v(x), _v(delta))

        torch.testing.assert_close(dJdw.t, w.grad)
        torch.testing.assert_close(dJdb, b.grad)
        assert dJdw.shape == tuple(layer.weights.shape)
        assert tuple(dJdb.shape) == tuple(layer.biases.shape)

    def test_compute_gradient_shape_mismatch(self):
        layer = dense(4, 3)
        with pytest.raises(ShapeMismatchError):
            layer.compute_gradient(_v(torch.randn(2, 4)), _v(torch.randn(3, 3)))
        with pytest.raises(ShapeMismatchError):
            layer.compute_gradient(_v(torch.randn(2, 5)), _v(torch.randn(2, 3)))


class TestClone:

    def test_clone_is_independent(self):
        layer = dense(3, 2)
        copy = layer.clone()
        assert copy is not layer
        assert copy.equals(layer)

        copy.weights.add_(1.0)
        copy.biases.add_(1.0)
        assert not copy.equals(layer)
        assert not torch.equal(copy.weights, layer.weights)

    def test_clone_keeps_kind_and_size(self):
        layer = dense(3, 2, ActivationType.LEAKY_RELU)
        copy = layer.clone()
        assert type(copy) is FullyConnectedLayer
        assert copy.activation_type == ActivationType.LEAKY_RELU
        assert (copy.inputs, copy.outputs) == (3, 2)

    def test_clone_yields_identical_gradients(self):
        layer = dense(4, 3)
        copy = layer.clone()
        _, f_prime = get_activation(ActivationType.SIGMOID)
        a = torch.randn(5, 4, dtype=torch.float64)
        z_prev = torch.randn(5, 4, dtype=torch.float64)
        delta_next = torch.randn(5, 3, dtype=torch.float64)

        results = []
        for l in (layer, copy):
            delta = l.backpropagate(_v(delta_next), _v(z_prev), f_prime)
            dJdw, dJdb = l.compute_gradient(_v(a), _v(delta_next))
            results.append((delta.t, dJdw.t, dJdb))

        for lhs, rhs in zip(*results):
            assert torch.equal(lhs, rhs)

    def test_output_layer_clone_keeps_cost(self):
        layer = output(4, 3, ActivationType.SOFTMAX, CostFunctionType.LOG_LIKELIHOOD)
        copy = layer.clone()
        assert isinstance(copy, OutputLayer)
        assert copy.cost_function_type == CostFunctionType.LOG_LIKELIHOOD
        assert copy.equals(layer)


class TestParameters:

    def test_set_parameters_checks_shapes(self):
        layer = dense(3, 2)
        with pytest.raises(ShapeMismatchError):
            layer.set_parameters(torch.zeros(2, 3, dtype=torch.float64), layer.biases)
        w = torch.ones(3, 2, dtype=torch.float64)
        b = torch.ones(2, dtype=torch.float64)
        layer.set_parameters(w, b)
        weights, biases = layer.parameters()
        assert weights is w and biases is b

    def test_constructor_rejects_bad_biases(self):
        with pytest.raises(ValueError):
            FullyConnectedLayer(torch.zeros(3, 2), torch.zeros(3), ActivationType.SIGMOID)

    def test_softmax_is_output_only(self):
        with pytest.raises(ValueError):
            FullyConnectedLayer.create(3, 2, ActivationType.SOFTMAX)
        with pytest.raises(ValueError):
            FullyConnectedLayer(torch.zeros(3, 2), torch.zeros(2), ActivationType.SOFTMAX)
        layer = output(3, 2, ActivationType.SOFTMAX, CostFunctionType.LOG_LIKELIHOOD)
        assert layer.clone().activation_type == ActivationType.SOFTMAX

    def test_create_rejects_empty_layer(self):
        with pytest.raises(ValueError):
            FullyConnectedLayer.create(0, 2, ActivationType.SIGMOID)

    def test_create_uses_env_dtype(self, monkeypatch):
        monkeypatch.setenv("CGRAPH_DTYPE", "f64")
        layer = FullyConnectedLayer.create(3, 2, ActivationType.SIGMOID)
        assert layer.weights.dtype == torch.float64

    def test_create_is_reproducible_with_generator(self):
        a = FullyConnectedLayer.create(3, 2, ActivationType.SIGMOID, generator=torch.Generator().manual_seed(1))
        b = FullyConnectedLayer.create(3, 2, ActivationType.SIGMOID, generator=torch.Generator().manual_seed(1))
        assert a.equals(b)


class TestOutputLayer:

    def test_quadratic_delta(self):
        layer = output(4, 2, ActivationType.SIGMOID, CostFunctionType.QUADRATIC)
        x = torch.randn(3, 4, dtype=torch.float64)
        y = torch.rand(3, 2, dtype=torch.float64)
        z, a = layer.forward(_v(x))

        delta = layer.backpropagate_output(a, _v(y), z)

        s = torch.sigmoid(z.t)
        torch.testing.assert_close(delta.t, (a.t - y) * s * (1.0 - s))

    def test_log_likelihood_delta_matches_autograd(self):
        layer = output(4, 3, ActivationType.SOFTMAX, CostFunctionType.LOG_LIKELIHOOD)
        x = torch.randn(5, 4, dtype=torch.float64)
        y = torch.nn.functional.one_hot(torch.tensor([0, 2, 1, 1, 0]), 3).to(torch.float64)

        z_auto = (x @ layer.weights + layer.biases).requires_grad_(True)
        loss = -(y * torch.log_softmax(z_auto, dim=1)).sum()
        loss.backward()

        z, a = layer.forward(_v(x))
        delta = layer.backpropagate_output(a, _v(y), z)

        torch.testing.assert_close(delta.t, z_auto.grad)
        assert layer.cost(a, _v(y)) == pytest.approx(loss.item() / 5)

    def test_cross_entropy_cost(self):
        layer = output(4, 2, ActivationType.SIGMOID, CostFunctionType.CROSS_ENTROPY)
        yhat = torch.tensor([[0.9, 0.2]], dtype=torch.float64)
        y = torch.tensor([[1.0, 0.0]], dtype=torch.float64)
        expected = -(torch.log(torch.tensor(0.9)) + torch.log(torch.tensor(0.8))).item()
        assert layer.cost(_v(yhat), _v(y)) == pytest.approx(expected, rel=1e-6)

    def test_incompatible_cost_and_activation(self):
        with pytest.raises(ValueError):
            output(4, 2, ActivationType.TANH, CostFunctionType.LOG_LIKELIHOOD)
        with pytest.raises(ValueError):
            output(4, 2, ActivationType.RELU, CostFunctionType.CROSS_ENTROPY)
        with pytest.raises(ValueError):
            output(4, 2, ActivationType.SOFTMAX, CostFunctionType.QUADRATIC)

    def test_target_shape_mismatch(self):
        layer = output(4, 2)
        with pytest.raises(ShapeMismatchError):
            layer.cost(_v(torch.zeros(3, 2)), _v(torch.zeros(3, 3)))
