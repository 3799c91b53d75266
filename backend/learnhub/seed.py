"""Fixed seed dataset loaded into a fresh store.

The seed makes the service usable without any write traffic: three
concepts, theory for the first two, two implementations and one
experiment for semi-supervised learning, and three papers. Records go
through the insert schemas and repositories like any API create, so the
first concept receives id 1.
"""

import logging
from . import repositories, schemas
from .database import InMemoryDatabase

logger = logging.getLogger("learnhub.seed")

CONCEPTS = [
    {
        "slug": "semi-supervised-learning",
        "title": "Semi-Supervised Learning",
        "description": "Semi-supervised learning addresses the common scenario where labeled data is scarce but unlabeled data is abundant.",
        "category": "semi-supervised",
    },
    {
        "slug": "self-supervised-learning",
        "title": "Self-Supervised Learning",
        "description": "Learning from the data itself by creating artificial supervised tasks.",
        "category": "self-supervised",
    },
    {
        "slug": "contrastive-learning",
        "title": "Contrastive Learning",
        "description": "Learning by comparing similar and dissimilar examples.",
        "category": "self-supervised",
    },
]

SEMI_SUPERVISED_THEORY = r"""# Introduction to Semi-Supervised Learning

Semi-supervised learning addresses the common scenario where labeled data is scarce but unlabeled data is abundant. It leverages both labeled and unlabeled data to build better models than would be possible using only the labeled data.

## Key Assumptions

1. **Smoothness Assumption**: Points that are close to each other in the input space are likely to share a label.
2. **Cluster Assumption**: The data tends to form discrete clusters, and points in the same cluster are likely to share a label.
3. **Manifold Assumption**: The high-dimensional data lies approximately on a low-dimensional manifold.

# Mathematical Foundations

Semi-supervised learning adds a term to the supervised objective to incorporate unlabeled data:

$$L = L_{supervised}(X_L, Y_L) + \lambda \cdot L_{unsupervised}(X_L \cup X_U)$$

Where:
- $X_L, Y_L$ are the labeled points and their labels
- $X_U$ are the unlabeled points
- $\lambda$ weights the unsupervised component

## Consistency Regularization

Model predictions should be stable when the input is perturbed:

$$L_{unsupervised} = \mathbb{E}_{x \in X_L \cup X_U} \mathbb{E}_{\eta, \eta'} \left[ d\left( f(x, \eta), f(x, \eta') \right) \right]$$

# Modern Semi-Supervised Techniques

## Pseudo-Labeling

1. Train the model on labeled data
2. Predict labels for unlabeled data
3. Keep high-confidence predictions as pseudo-labels
4. Retrain on labeled and pseudo-labeled data

## Mean Teacher

A teacher model, the exponential moving average of the student's parameters, provides stable targets:

$$L_{MT} = \sum_{x \in X_L \cup X_U} ||f_{\theta}(x, \eta) - f_{\theta'}(x, \eta')||^2$$

## FixMatch

Weak augmentations produce pseudo-labels, strong augmentations are trained to match them:

$$L_{FM} = \sum_{x \in X_U} \mathbf{1}(\max(p_m) \geq \tau) \cdot H(\hat{q}, p_s)$$
"""

SELF_SUPERVISED_THEORY = r"""# Self-Supervised Learning

Self-supervised learning derives the supervision signal from the data itself. A pretext task built from unlabeled data generates pseudo-labels for ordinary supervised training.

## Core Principles

1. **Pretext Tasks**: inputs and labels are both derived from the data
2. **Representation Learning**: the goal is useful features, not a perfect pretext score
3. **Transfer Learning**: learned representations are reused on downstream tasks

## Mathematical Formulation

$$\min_{\theta} \mathcal{L}(f_{\theta}(\mathcal{T}(x)), g(x))$$

Where $\mathcal{T}$ transforms the input, $g$ generates pseudo-labels from $x$ and $f_{\theta}$ is the model.

# Key Techniques

- **Rotation Prediction**: predict by how much an image was rotated
- **Jigsaw Puzzles**: recover the position of shuffled patches
- **Masked Language Modeling**: predict masked tokens in a sequence

# Contrastive and Non-Contrastive Methods

Contrastive methods (SimCLR, MoCo) pull positive pairs together and push negative pairs apart. BYOL and SimSiam avoid negatives altogether, using a target network or a stop-gradient to prevent collapse.
"""

FIXMATCH_PY = '''import torch
import torch.nn as nn
import torch.nn.functional as F


class FixMatch(nn.Module):
    def __init__(self, model, threshold=0.95, lambda_u=1.0):
        super().__init__()
        self.model = model
        self.threshold = threshold
        self.lambda_u = lambda_u

    def forward(self, x_labeled, y_labeled, x_unlabeled_weak, x_unlabeled_strong):
        logits_labeled = self.model(x_labeled)
        loss_supervised = F.cross_entropy(logits_labeled, y_labeled)

        with torch.no_grad():
            probs = F.softmax(self.model(x_unlabeled_weak), dim=1)
            max_probs, pseudo_labels = torch.max(probs, dim=1)
            mask = max_probs.ge(self.threshold).float()

        logits_strong = self.model(x_unlabeled_strong)
        loss_unsupervised = (F.cross_entropy(logits_strong, pseudo_labels, reduction="none") * mask).mean()

        loss = loss_supervised + self.lambda_u * loss_unsupervised
        return loss, loss_supervised, loss_unsupervised


def train(labeled_loader, unlabeled_loader, model, optimizer, fixmatch, device):
    model.train()
    for (x_l, y_l), (x_u_weak, x_u_strong) in zip(labeled_loader, unlabeled_loader):
        x_l, y_l = x_l.to(device), y_l.to(device)
        x_u_weak, x_u_strong = x_u_weak.to(device), x_u_strong.to(device)
        optimizer.zero_grad()
        loss, _, _ = fixmatch(x_l, y_l, x_u_weak, x_u_strong)
        loss.backward()
        optimizer.step()
'''

MEAN_TEACHER_CPP = '''#include <torch/torch.h>

class MeanTeacher {
    torch::nn::Module& student;
    torch::nn::Module& teacher;
    double ema_decay;

public:
    MeanTeacher(torch::nn::Module& s, torch::nn::Module& t, double decay = 0.999)
        : student(s), teacher(t), ema_decay(decay) {
        update_teacher(1.0);
    }

    void update_teacher(double alpha = -1) {
        double decay = (alpha < 0) ? ema_decay : alpha;
        auto teacher_params = teacher.named_parameters();
        for (const auto& p : student.named_parameters()) {
            auto* t = teacher_params.find(p.key());
            if (t != nullptr) {
                t->data().mul_(decay).add_(p.value().data(), 1 - decay);
            }
        }
    }

    torch::Tensor consistency_loss(const torch::Tensor& student_out, const torch::Tensor& teacher_out) {
        return torch::mse_loss(student_out, teacher_out);
    }
};
'''

FIXMATCH_SETUP = """# Experimental Setup

- **Dataset**: CIFAR-10
- **Labeled Data**: 4000 examples (8% of training data)
- **Model Architecture**: WideResNet-28-2
- **Batch Size**: 64 labeled, 448 unlabeled
- **Optimization**: SGD with momentum
- **Learning Rate**: 0.03 with cosine decay
- **Threshold**: 0.95
- **Strong Augmentation**: RandAugment
- **Weak Augmentation**: Random horizontal flip and crop
"""

PAPERS = [
    {
        "title": "FixMatch: Simplifying Semi-Supervised Learning with Consistency and Confidence",
        "authors": "Kihyuk Sohn, David Berthelot, Chun-Liang Li, Zizhao Zhang, Nicholas Carlini, Ekin D. Cubuk, Alex Kurakin, Han Zhang, Colin Raffel",
        "year": 2020,
        "conference": "NeurIPS",
        "link": "https://arxiv.org/abs/2001.07685",
        "abstract": "Semi-supervised learning (SSL) provides an effective means to leverage unlabeled data to improve a model's performance. FixMatch first generates pseudo-labels using the model's predictions on weakly-augmented unlabeled images, keeps only high-confidence ones, and trains the model to predict them on strongly-augmented versions of the same images.",
        "key_points": "- Combines pseudo-labeling with consistency regularization\n- Weak augmentation generates pseudo-labels\n- Strong augmentation is used for consistency\n- Only high-confidence predictions are retained\n- Works well with very few labeled examples",
        "concepts": ["semi-supervised-learning", "consistency-regularization", "pseudo-labeling"],
    },
    {
        "title": "Bootstrap Your Own Latent: A New Approach to Self-Supervised Learning",
        "authors": "Jean-Bastien Grill, Florian Strub, Florent Altché, Corentin Tallec, Pierre H. Richemond, Elena Buchatskaya, Carl Doersch, Bernardo Avila Pires, Zhaohan Daniel Guo, Mohammad Gheshlaghi Azar, Bilal Piot, Koray Kavukcuoglu, Rémi Munos, Michal Valko",
        "year": 2020,
        "conference": "NeurIPS",
        "link": "https://arxiv.org/abs/2006.07733",
        "abstract": "BYOL relies on an online and a target network that learn from each other. The online network predicts the target network's representation of a differently augmented view of the same image, while the target is a slow-moving average of the online network. BYOL reaches state-of-the-art results without negative pairs.",
        "key_points": "- No negative pairs required\n- Online and target networks\n- Target updated as an exponential moving average\n- Competitive with contrastive methods",
        "concepts": ["self-supervised-learning", "representation-learning"],
    },
    {
        "title": "A Simple Framework for Contrastive Learning of Visual Representations",
        "authors": "Ting Chen, Simon Kornblith, Mohammad Norouzi, Geoffrey Hinton",
        "year": 2020,
        "conference": "ICML",
        "link": "https://arxiv.org/abs/2002.05709",
        "abstract": "SimCLR is a simple framework for contrastive learning of visual representations without specialized architectures or a memory bank. Composition of data augmentations, a learnable nonlinear projection head and larger batches all substantially improve the learned representations.",
        "key_points": "- No specialized architecture or memory bank\n- Data augmentation is critical\n- Projection head before the contrastive loss\n- Benefits from large batch sizes",
        "concepts": ["self-supervised-learning", "contrastive-learning"],
    },
]


def load_seed_data(db: InMemoryDatabase) -> None:
    """Populate `db` with the fixed seed dataset."""
    concept_repo = repositories.ConceptRepository(db)
    theory_repo = repositories.TheoryRepository(db)
    code_repo = repositories.CodeRepository(db)
    experiment_repo = repositories.ExperimentRepository(db)
    paper_repo = repositories.PaperRepository(db)

    semi, selfsup, _ = [concept_repo.create(schemas.ConceptIn(**c)) for c in CONCEPTS]

    theory_repo.create(schemas.TheoryIn(
        conceptId=semi.id,
        content=SEMI_SUPERVISED_THEORY,
        references="Oliver, A., Odena, A., Raffel, C., Cubuk, E. D., & Goodfellow, I. J. (2018). Realistic Evaluation of Deep Semi-Supervised Learning Algorithms. NeurIPS.",
    ))
    theory_repo.create(schemas.TheoryIn(
        conceptId=selfsup.id,
        content=SELF_SUPERVISED_THEORY,
        references="Chen, T., Kornblith, S., Norouzi, M., & Hinton, G. (2020). A simple framework for contrastive learning of visual representations. ICML.",
    ))

    code_repo.create(schemas.CodeIn(
        conceptId=semi.id,
        title="FixMatch Implementation",
        language="python",
        code=FIXMATCH_PY,
        description="A PyTorch implementation of FixMatch, combining consistency regularization with pseudo-labeling.",
    ))
    code_repo.create(schemas.CodeIn(
        conceptId=semi.id,
        title="Mean Teacher in C++",
        language="cpp",
        code=MEAN_TEACHER_CPP,
        description="Mean Teacher with the PyTorch C++ API: the teacher is an exponential moving average of the student's weights.",
    ))

    experiment_repo.create(schemas.ExperimentIn(
        conceptId=semi.id,
        title="FixMatch on CIFAR-10",
        description="Evaluation of FixMatch on CIFAR-10 with varying amounts of labeled data.",
        setup=FIXMATCH_SETUP,
        results={
            "accuracy": 94.93,
            "error_rate": 5.07,
            "comparison": {
                "supervised_only": 83.32,
                "pseudo_label": 85.22,
                "mean_teacher": 89.64,
                "uda": 91.18,
                "fixmatch": 94.93,
            },
        },
        metrics={
            "epochs": [1, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50],
            "train_loss": [2.3, 1.8, 1.4, 1.1, 0.9, 0.8, 0.7, 0.6, 0.5, 0.4, 0.35],
            "val_loss": [2.2, 1.7, 1.3, 1.0, 0.85, 0.75, 0.65, 0.6, 0.55, 0.5, 0.45],
            "train_accuracy": [45, 56, 67, 75, 80, 84, 87, 90, 92, 93, 94],
            "val_accuracy": [44, 55, 65, 73, 78, 82, 85, 88, 91, 93, 94],
        },
    ))

    for p in PAPERS:
        paper_repo.create(schemas.PaperIn(**p))

    logger.info(
        "seed data loaded: %d concepts, %d papers",
        len(db.concepts), len(db.papers),
    )
